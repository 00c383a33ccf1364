import asyncio
import re
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from notenexus.core.config import settings
from notenexus.core.exceptions import StorageError
from notenexus.core.logging_config import logger


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """Keep the base name only, with anything outside [A-Za-z0-9._-] replaced"""
    name = Path(filename or "").name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name[:200] or "file"


def build_object_key(filename: str) -> str:
    return f"{uuid.uuid4()}-{sanitize_filename(filename)}"


class StorageClient:
    """Blob store for uploaded notes and files: local directory or S3"""

    def __init__(self, mode: Optional[str] = None, upload_dir: Optional[Path] = None):
        self.mode = (mode or settings.STORAGE_MODE).lower()
        self.upload_dir = Path(upload_dir) if upload_dir else settings.UPLOAD_DIR
        self.url_prefix = settings.UPLOAD_URL_PREFIX.rstrip("/")
        self.bucket_name = settings.S3_BUCKET_NAME
        self.client = None

        if self.mode == "s3":
            self.client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
                region_name=settings.AWS_REGION
            )
        else:
            self.upload_dir.mkdir(parents=True, exist_ok=True)

    @property
    def is_s3(self) -> bool:
        return self.mode == "s3"

    def get_file_url(self, object_name: str) -> str:
        if self.is_s3:
            return f"https://{self.bucket_name}.s3.{settings.AWS_REGION}.amazonaws.com/{object_name}"
        return f"{self.url_prefix}/{object_name}"

    def _object_name_from_url(self, url: str) -> Optional[str]:
        if self.is_s3:
            marker = ".amazonaws.com/"
            return url.split(marker, 1)[1] if marker in url else None
        prefix = f"{self.url_prefix}/"
        return url[len(prefix):] if url.startswith(prefix) else None

    def _write_local(self, file_obj: BinaryIO, object_name: str) -> None:
        target = self.upload_dir / object_name
        with open(target, "wb") as out:
            while True:
                chunk = file_obj.read(1024 * 1024)
                if not chunk:
                    break
                out.write(chunk)

    def _upload_s3(self, file_obj: BinaryIO, object_name: str, content_type: Optional[str]) -> None:
        extra_args = {}
        if content_type:
            extra_args['ContentType'] = content_type
        self.client.upload_fileobj(
            file_obj,
            self.bucket_name,
            object_name,
            ExtraArgs=extra_args
        )

    async def save(self, file_obj: BinaryIO, filename: str, content_type: Optional[str] = None) -> str:
        """
        Store a file object under a fresh unique key.

        Returns:
            URL of the stored file
        """
        object_name = build_object_key(filename)
        try:
            if self.is_s3:
                await asyncio.to_thread(self._upload_s3, file_obj, object_name, content_type)
            else:
                await asyncio.to_thread(self._write_local, file_obj, object_name)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"Error uploading file object {object_name}: {e}")
            raise StorageError("Failed to store uploaded file")

        logger.info(f"Uploaded file object: {object_name}")
        return self.get_file_url(object_name)

    async def delete(self, url: str) -> bool:
        """Best-effort removal; the database row is what matters"""
        object_name = self._object_name_from_url(url)
        if not object_name:
            logger.warning(f"Not a managed storage URL, skipping delete: {url}")
            return False
        try:
            if self.is_s3:
                await asyncio.to_thread(
                    self.client.delete_object, Bucket=self.bucket_name, Key=object_name
                )
            else:
                (self.upload_dir / object_name).unlink(missing_ok=True)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"Error deleting file {object_name}: {e}")
            return False

        logger.info(f"Deleted file: {object_name}")
        return True

    def check(self) -> bool:
        """Reachability probe for health checks"""
        if self.is_s3:
            self.client.head_bucket(Bucket=self.bucket_name)
            return True
        return self.upload_dir.is_dir()


_storage_client: Optional[StorageClient] = None


def get_storage() -> StorageClient:
    """Dependency: shared storage client, created on first use"""
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient()
    return _storage_client
