import os
import sys
from functools import lru_cache

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel


_ENV_PATH = os.path.join(os.path.dirname(__file__), "..", ".env")
load_dotenv(dotenv_path=_ENV_PATH, override=False)

OCR_ENGINES = ("hybrid", "tesseract", "google")


def _get_env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return float(v)


class Settings(BaseModel):
    API_URL: str
    PROXY_TARGET: str
    REQUEST_TIMEOUT: float
    UPLOAD_TIMEOUT: float
    MAX_UPLOAD_BYTES: int
    DEFAULT_OCR_ENGINE: str
    CATEGORIES_DEDUP: float
    TRANSACTIONS_DEDUP: float
    TOKEN_PATH: str
    DEBUG: bool
    APP_ENV: str

    @property
    def persist_token(self) -> bool:
        return bool(self.TOKEN_PATH)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    api_url = _get_env("TENNY_API_URL", "http://localhost:8080").rstrip("/")
    engine = _get_env("TENNY_DEFAULT_OCR_ENGINE", "hybrid").strip().lower()
    return Settings(
        API_URL=api_url,
        PROXY_TARGET=_get_env("TENNY_PROXY_TARGET", api_url).rstrip("/"),
        REQUEST_TIMEOUT=_get_float("TENNY_REQUEST_TIMEOUT", 10.0),
        UPLOAD_TIMEOUT=_get_float("TENNY_UPLOAD_TIMEOUT", 120.0),
        MAX_UPLOAD_BYTES=int(_get_float("TENNY_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)),
        DEFAULT_OCR_ENGINE=engine if engine in OCR_ENGINES else "hybrid",
        CATEGORIES_DEDUP=_get_float("TENNY_CATEGORIES_DEDUP", 30.0),
        TRANSACTIONS_DEDUP=_get_float("TENNY_TRANSACTIONS_DEDUP", 10.0),
        TOKEN_PATH=_get_env("TENNY_TOKEN_PATH", ""),
        DEBUG=_get_bool("DEBUG", True),
        APP_ENV=_get_env("APP_ENV", "development"),
    )


settings = get_settings()


def configure_logging() -> None:
    """Single stderr sink; DEBUG shows cache hits and stale-response drops."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.DEBUG else "INFO")
