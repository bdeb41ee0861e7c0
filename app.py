"""
My Little Fancam print service - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and sets up logging
2. Builds the Epson Connect settings and shared token cache
3. Creates the batch service (thread-per-batch)
4. Registers route blueprints and error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling (one PrintService per status/cancel request)
    └── Cleanup on shutdown (waits for batch threads)

    Batch Threads (one per POST /api/print)
    └── Each with its OWN PrintService and HTTP session

The token cache (disabled unless EPSON_TOKEN_CACHE_SECONDS > 0) is the
only object shared between threads.
"""

from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import ConfigurationError
from core.settings import EpsonSettings
from core.token_cache import TokenCache
from modules.photo_source import PhotoSource
from routes import register_blueprints
from services.batch_service import BatchPrintService, BatchResultStore
from services.print_service import PrintService


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def create_app(
    config_object: Union[str, type] = "config.Config",
    service_factory: Optional[Callable[[], PrintService]] = None,
) -> Flask:
    """
    Application factory - creates and configures the Flask app.

    FAIL-FAST: If Epson Connect credentials are missing, the app will not start.

    Args:
        config_object: Config class or its import path
        service_factory: Builds a PrintService (defaults to one per call
            from the app's Epson settings)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If EPSON_CLIENT_ID or EPSON_CLIENT_SECRET is missing
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Fancam print service in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION (FAIL-FAST)
    # =========================================================================

    settings = EpsonSettings.from_config(app.config)
    token_cache = TokenCache(settings.token_cache_seconds)

    if service_factory is None:
        def service_factory() -> PrintService:
            return PrintService(settings, token_cache=token_cache)

    try:
        # Constructing one service validates the credentials
        service_factory().close()
    except ConfigurationError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    if token_cache.enabled:
        logger.info(f"Token cache enabled ({token_cache.ttl_seconds:.0f}s)")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    photo_folder = Path(app.config["PHOTO_FOLDER"])
    photo_folder.mkdir(parents=True, exist_ok=True)

    result_store = BatchResultStore(
        max_results=int(app.config.get("BATCH_RESULT_MAX_COUNT", 500)),
        max_age_seconds=float(app.config.get("BATCH_RESULT_MAX_AGE_SECONDS", 3600)),
    )
    batch_service = BatchPrintService(service_factory, result_store)

    app.config["EPSON_SETTINGS"] = settings
    app.config["TOKEN_CACHE"] = token_cache
    app.config["PRINT_SERVICE_FACTORY"] = service_factory
    app.config["BATCH_SERVICE"] = batch_service
    app.config["PHOTO_SOURCE"] = PhotoSource(photo_folder)

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        batch_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        return {"success": False, "error": f"Request too large. Maximum is {max_mb:.0f} MB."}, 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"success": False, "error": e.description}, e.code

    @app.errorhandler(Exception)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"success": False, "error": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
