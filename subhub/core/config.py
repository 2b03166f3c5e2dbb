import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.app_env = os.getenv("APP_ENV", "development").lower()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/subhub.db")).resolve()
        self.creem_api_key = os.getenv("CREEM_API_KEY") or None
        self.creem_test_mode = self._get_bool(
            "CREEM_TEST_MODE", default=self.app_env != "production"
        )
        self.creem_base_url = os.getenv("CREEM_BASE_URL") or None
        self.creem_basic_product_id = os.getenv("CREEM_BASIC_PRODUCT_ID") or None
        self.app_url = os.getenv("APP_URL", "http://localhost:3000")
        self.provider_timeout_seconds = self._get_float("PROVIDER_TIMEOUT_SECONDS", default=10.0)
        self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expiration_hours = self._get_int("JWT_EXPIRATION_HOURS", default=24)
        self.trial_grace_period_hours = self._get_int("TRIAL_GRACE_PERIOD_HOURS", default=24)
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be a number") from exc

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise RuntimeError(f"Environment variable {key} must be a boolean")
