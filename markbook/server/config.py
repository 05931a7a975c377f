"""
Server configuration — environment-aware settings.

Values come from environment variables (a local .env file is loaded first when
present). Tests bypass these classes by passing a dict to create_app().
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET_KEY = "markbook-secret-key-change-in-production"


class BaseConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", DEFAULT_SECRET_KEY)

    # JSON file holding every user and their courses
    DATA_FILE = os.environ.get("MARKBOOK_DATA_FILE", os.path.join(os.getcwd(), "data.json"))

    # Bearer tokens
    TOKEN_MAX_AGE = int(os.environ.get("MARKBOOK_TOKEN_MAX_AGE", str(30 * 24 * 3600)))
    TOKEN_SALT = "markbook-auth"

    MIN_USERNAME_LENGTH = 3
    MIN_PASSWORD_LENGTH = 4

    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB of course data
    CORS_ORIGIN = os.environ.get("MARKBOOK_CORS_ORIGIN", "*")
    PORT = int(os.environ.get("PORT", "3001"))

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")

    @classmethod
    def validate(cls):
        """Fail fast on an insecure production configuration."""
        if cls.SECRET_KEY in (DEFAULT_SECRET_KEY, ""):
            raise RuntimeError("SECRET_KEY must be set to a secure value in production.")


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}
