"""
Configuration for the My Little Fancam print service.

All Epson Connect settings come from the environment (or a .env file) and
fall back to the hardcoded defaults below when unset.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB request bodies

    # Folder holding processed event photos, named <photo_id>.jpg
    PHOTO_FOLDER = os.environ.get(
        "PHOTO_FOLDER", str(BASE_DIR / "static" / "photos")
    )

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Epson Connect
    # ==========================================================================
    # EPSON_DEVICE is the printer's email-style address registered with
    # Epson Connect. It is used as the OAuth username.
    # ==========================================================================
    EPSON_HOST = os.environ.get("EPSON_HOST", "api.epsonconnect.com")
    EPSON_CLIENT_ID = os.environ.get("EPSON_CLIENT_ID", "")
    EPSON_CLIENT_SECRET = os.environ.get("EPSON_CLIENT_SECRET", "")
    EPSON_DEVICE = os.environ.get("EPSON_DEVICE", "")

    # Print defaults (document / photo, see the Epson Connect API reference)
    EPSON_PRINT_MODE = os.environ.get("EPSON_PRINT_MODE", "document")
    EPSON_DEFAULT_MEDIA_SIZE = os.environ.get("EPSON_DEFAULT_MEDIA_SIZE", "ms_a4")
    EPSON_DEFAULT_MEDIA_TYPE = os.environ.get("EPSON_DEFAULT_MEDIA_TYPE", "mt_plainpaper")

    # ==========================================================================
    # Transport behaviour
    # ==========================================================================
    # EPSON_MAX_RETRIES: extra attempts for connection errors, timeouts,
    #   429 and 5xx responses. 0 = single attempt.
    # EPSON_TOKEN_CACHE_SECONDS: reuse a bearer token per device for up to
    #   this many seconds. 0 = authenticate on every operation.
    # PRINT_BATCH_DELAY_SECONDS: pause between items of a batch.
    # ==========================================================================
    EPSON_REQUEST_TIMEOUT_SECONDS = float(
        os.environ.get("EPSON_REQUEST_TIMEOUT_SECONDS", "30")
    )
    EPSON_MAX_RETRIES = int(os.environ.get("EPSON_MAX_RETRIES", "0"))
    EPSON_RETRY_BACKOFF_SECONDS = float(
        os.environ.get("EPSON_RETRY_BACKOFF_SECONDS", "1.0")
    )
    EPSON_TOKEN_CACHE_SECONDS = float(
        os.environ.get("EPSON_TOKEN_CACHE_SECONDS", "0")
    )
    PRINT_BATCH_DELAY_SECONDS = float(
        os.environ.get("PRINT_BATCH_DELAY_SECONDS", "1.0")
    )

    # Finished batch results nobody polls for are dropped after this long,
    # and the oldest go first beyond BATCH_RESULT_MAX_COUNT
    BATCH_RESULT_MAX_AGE_SECONDS = float(
        os.environ.get("BATCH_RESULT_MAX_AGE_SECONDS", "3600")
    )
    BATCH_RESULT_MAX_COUNT = int(os.environ.get("BATCH_RESULT_MAX_COUNT", "500"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    EPSON_CLIENT_ID = "test-client-id"
    EPSON_CLIENT_SECRET = "test-client-secret"
    EPSON_DEVICE = "printer@print.epsonconnect.com"
    EPSON_MAX_RETRIES = 0
    EPSON_TOKEN_CACHE_SECONDS = 0.0
    PRINT_BATCH_DELAY_SECONDS = 0.0
