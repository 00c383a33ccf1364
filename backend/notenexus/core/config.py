from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_extensions(v: Any) -> List[str]:
    """Parse allowed extensions from string or list, normalized to lower case without dots"""
    if isinstance(v, list):
        items = v
    elif isinstance(v, str):
        items = None
        if v.startswith('['):
            try:
                items = json.loads(v)
            except json.JSONDecodeError:
                items = None
        if items is None:
            items = v.split(',')
    else:
        return []
    return [str(ext).strip().lstrip('.').lower() for ext in items if str(ext).strip()]


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "NoteNexus"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False

    # ==========================================
    # Redis (verification tickets, rate limit storage)
    # ==========================================
    REDIS_URL: str

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60  # 1 hour
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod (secure)

    # ==========================================
    # Email verification (OTP)
    # ==========================================
    OTP_TTL_SECONDS: int = 600  # 10 minutes, for both the code and the verified marker
    OTP_LENGTH: int = 6
    VERIFICATION_KEY_PREFIX: str = "verification:"

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@notenexus.app"
    EMAIL_FROM_NAME: str = "NoteNexus"
    CONTACT_TO_EMAIL: str = ""

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://localhost:5174,http://127.0.0.1:5173,http://127.0.0.1:5174"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # use the Redis URL in multi-worker deployments

    # ==========================================
    # File Upload / Storage
    # ==========================================
    STORAGE_MODE: str = "local"  # "local" or "s3"
    UPLOAD_PATH: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET_NAME: str = ""

    MAX_UPLOAD_SIZE: int = 26214400  # 25MB
    ALLOWED_EXTENSIONS_STR: str = "pdf,doc,docx,ppt,pptx,txt,png,jpg,jpeg,zip"

    @property
    def ALLOWED_EXTENSIONS(self) -> List[str]:
        """Parse allowed extensions from comma-separated string"""
        return parse_extensions(self.ALLOWED_EXTENSIONS_STR)

    @property
    def UPLOAD_DIR(self) -> Path:
        return Path(self.UPLOAD_PATH)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def OTP_TTL_MINUTES(self) -> int:
        return max(1, self.OTP_TTL_SECONDS // 60)

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def is_s3_storage(self) -> bool:
        return self.STORAGE_MODE.lower() == "s3"


# Create settings instance
settings = Settings()
