"""
Configuration for the Grovi crop-monitoring client
Environment driven, with .env support for local development
"""

import os
from urllib.parse import urlparse
import logging

from dotenv import load_dotenv

load_dotenv(override=False)

_DEFAULT_STATE_DIR = os.path.join(os.path.expanduser("~"), ".grovi")


class Settings:
    """Client settings resolved from the environment"""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOCALE: str = os.getenv("GROVI_LOCALE", "th")

    # Backend API
    API_BASE_URL: str = os.getenv("GROVI_API_BASE_URL", "http://localhost:8000").strip().rstrip('/')
    # Satellite analysis on the backend can take well over a minute
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("GROVI_REQUEST_TIMEOUT", "120"))
    AUTH_ENTRY_POINT: str = os.getenv("GROVI_AUTH_ENTRY_POINT", "/auth")

    # Credential storage (SQLAlchemy URL)
    STATE_DIR: str = os.getenv("GROVI_STATE_DIR", _DEFAULT_STATE_DIR)
    DATABASE_URL: str = os.getenv(
        "GROVI_DATABASE_URL",
        "sqlite:///" + os.path.join(os.getenv("GROVI_STATE_DIR", _DEFAULT_STATE_DIR), "session.db"),
    )

    # Public geocoder used when the backend search endpoint fails
    GEOCODER_URL: str = os.getenv("GROVI_GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
    GEOCODER_COUNTRY_CODES: str = os.getenv("GROVI_GEOCODER_COUNTRY_CODES", "th")
    GEOCODER_TIMEOUT_SECONDS: float = float(os.getenv("GROVI_GEOCODER_TIMEOUT", "15"))
    USER_AGENT: str = os.getenv("GROVI_USER_AGENT", "Grovi-CropMonitoring/1.0")

    # Analysis defaults
    SNAPSHOT_LIMIT: int = int(os.getenv("GROVI_SNAPSHOT_LIMIT", "4"))
    ANALYSIS_COUNT: int = int(os.getenv("GROVI_ANALYSIS_COUNT", "4"))

    # Bulk export output
    EXPORT_DIR: str = os.getenv("GROVI_EXPORT_DIR", os.path.join(os.getcwd(), "exports"))

    def __init__(self):
        """Initialize settings and validate configuration"""
        self.validate_configuration()
        self.setup_logging()

    def validate_configuration(self):
        """Validate required configuration"""

        parsed = urlparse(self.API_BASE_URL)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"GROVI_API_BASE_URL must be an http(s) origin, got '{self.API_BASE_URL}'")

        if self.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError("GROVI_REQUEST_TIMEOUT must be a positive number of seconds")

        if not self.AUTH_ENTRY_POINT.startswith("/"):
            raise ValueError("GROVI_AUTH_ENTRY_POINT must be an absolute path such as '/auth'")

        if self.LOCALE not in ("th", "en"):
            logging.warning(f"Unsupported locale '{self.LOCALE}', falling back to 'th'")
            self.LOCALE = "th"

        if self.ENVIRONMENT == "production" and parsed.scheme == "http" and parsed.hostname not in ("localhost", "127.0.0.1"):
            logging.warning("GROVI_API_BASE_URL uses plain http in production. Bearer tokens will travel unencrypted.")

    def setup_logging(self):
        """Configure logging based on environment"""

        log_level = getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)

        if self.ENVIRONMENT == "production":
            # Production logging - structured JSON
            logging.basicConfig(
                level=log_level,
                format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}',
                handlers=[logging.StreamHandler()]
            )
        else:
            # Development logging - readable format
            logging.basicConfig(
                level=log_level,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                handlers=[logging.StreamHandler()]
            )

    @property
    def database_config(self) -> dict:
        """Get credential-store configuration for SQLAlchemy"""
        config = {
            "url": self.DATABASE_URL,
            "pool_pre_ping": True,
            "echo": self.ENVIRONMENT == "development"
        }
        if self.DATABASE_URL.startswith("sqlite"):
            config["connect_args"] = {"check_same_thread": False}
        return config

    @property
    def geocoder_config(self) -> dict:
        """Get public geocoder request configuration"""
        return {
            "url": self.GEOCODER_URL,
            "countrycodes": self.GEOCODER_COUNTRY_CODES,
            "timeout": self.GEOCODER_TIMEOUT_SECONDS,
            "headers": {"User-Agent": self.USER_AGENT},
        }

    def api_url(self, endpoint: str) -> str:
        """Join an endpoint onto the configured API origin"""
        clean_endpoint = endpoint[1:] if endpoint.startswith('/') else endpoint
        return f"{self.API_BASE_URL}/{clean_endpoint}"


# Create global settings instance
settings = Settings()

# Export commonly used values
API_BASE_URL = settings.API_BASE_URL
ENVIRONMENT = settings.ENVIRONMENT
