from pathlib import Path

from decouple import config
from pydantic import BaseModel

DEBUG = config("DEBUG", cast=bool, default=False)

GITHUB_TOKEN = config("GITHUB_TOKEN", default=None)
GITHUB_OWNER = config("GITHUB_OWNER", default="rascoused")
GITHUB_API_URL = config("GITHUB_API_URL", default="https://api.github.com")
GITHUB_USER_AGENT = config("GITHUB_USER_AGENT", default="GHS-Binder/1.0.0")

DATA_DIR = config("DATA_DIR", cast=Path, default=".")
CUSTOMER_CONFIGS_DIR = config("CUSTOMER_CONFIGS_DIR", cast=Path, default=DATA_DIR / "customer_configs")
PDFS_DIR = config("PDFS_DIR", cast=Path, default=DATA_DIR / "pdfs")
ASSETS_DIR = config("ASSETS_DIR", cast=Path, default=DATA_DIR / "assets")
UPLOADS_DIR = config("UPLOADS_DIR", cast=Path, default=DATA_DIR / "uploads")

# Seconds to wait after enabling Pages before the published PDFs are checked
PAGES_SETTLE_SECONDS = config("PAGES_SETTLE_SECONDS", cast=float, default=10)
VERIFY_ATTEMPTS = config("VERIFY_ATTEMPTS", cast=int, default=1)
VERIFY_BACKOFF_SECONDS = config("VERIFY_BACKOFF_SECONDS", cast=float, default=5)
VERIFY_MIN_BYTES = config("VERIFY_MIN_BYTES", cast=int, default=1024)

SITE_VERSION = config("SITE_VERSION", default="1.0.0")

DASHBOARD_HOST = config("DASHBOARD_HOST", default="127.0.0.1")
DASHBOARD_PORT = config("DASHBOARD_PORT", cast=int, default=3000)
MAX_UPLOAD_BYTES = config("MAX_UPLOAD_BYTES", cast=int, default=10 * 1024 * 1024)

CUSTOMER_TEMPLATE_FILENAME = "customer_template.json"
COMPLETE_BINDER_FILENAME = "complete_ghs_binder.pdf"
REPO_SUFFIX = "-ghs-binder"
REPO_TOPICS = ["ghs", "safety", "chemical-safety", "osha-compliance", "sds"]
SITE_DIRECTORIES = ["pdfs", "assets", "qr-codes"]


class LogConfig(BaseModel):
    """Logging configuration for the application."""

    LOGGER_NAME: str = "ghsbinder"
    LOG_FORMAT: str = "%(levelprefix)s | %(asctime)s | %(message)s"
    LOG_LEVEL: str = "DEBUG" if DEBUG else "INFO"

    # Logging config
    version: int = 1
    disable_existing_loggers: bool = False
    formatters: dict = {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": LOG_FORMAT,
            "datefmt": r"%Y-%m-%d %H:%M:%S",
        },
    }
    handlers: dict = {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    }
    loggers: dict = {
        LOGGER_NAME: {"handlers": ["default"], "level": LOG_LEVEL},
    }
