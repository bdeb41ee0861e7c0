"""
Main routes (index, health).
"""

from flask import Blueprint, current_app

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Describe the service and its endpoints."""
    return {
        "service": "my-little-fancam-print",
        "endpoints": [
            "POST /api/print",
            "GET /api/print/batches/<batch_id>",
            "GET /api/print/jobs/<job_id>",
            "DELETE /api/print/jobs/<job_id>",
            "GET /health",
        ],
    }


@main_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with configuration and service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    if current_app.config.get("EPSON_DEVICE"):
        health_status["checks"]["epson_device"] = "configured"
    else:
        # Callers may still pass printerEmail per request
        health_status["checks"]["epson_device"] = "not_set"

    # Print services
    for key, name in (("PRINT_SERVICE_FACTORY", "print_service"), ("BATCH_SERVICE", "batch_service")):
        if current_app.config.get(key):
            health_status["checks"][name] = "ok"
        else:
            health_status["checks"][name] = "not_available"
            health_status["status"] = "degraded"

    # Photo folder
    photo_source = current_app.config.get("PHOTO_SOURCE")
    if photo_source and photo_source.folder.is_dir():
        health_status["checks"]["photo_folder"] = "ok"
    else:
        health_status["checks"]["photo_folder"] = "missing"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
