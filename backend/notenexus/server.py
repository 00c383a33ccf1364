"""Console entry point: serve the API with uvicorn"""
import uvicorn

from notenexus.core.config import settings


def main():
    uvicorn.run(
        "notenexus.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.is_dev_mode(),
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
