"""
Print API routes (JSON).

Handles:
- POST   /api/print                      - Start a background print batch
- GET    /api/print/batches/<batch_id>   - Poll a batch
- GET    /api/print/jobs/<job_id>        - Read one job's status
- DELETE /api/print/jobs/<job_id>        - Cancel one job

Photo ids are resolved to bytes through PHOTO_SOURCE; printing itself is
delegated to BATCH_SERVICE (background batches) or to a PrintService
built per request by PRINT_SERVICE_FACTORY.
"""

import html

import bleach
from flask import Blueprint, current_app, request

from core.exceptions import (
    ConfigurationError,
    FancamPrintError,
    PhotoNotFoundError,
    PrintServiceError,
)
from models.print_settings import PrintSettings
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

print_api_bp = Blueprint("print_api", __name__)

MAX_JOB_NAME_LENGTH = 200
MAX_PHOTOS_PER_BATCH = 50


def _sanitize_text(text, max_length: int = None) -> str:
    """
    Strip HTML tags and surrounding whitespace from user input.

    The result goes into a JSON body, not a page, so the entities bleach
    escapes are turned back into plain characters.
    """
    if not text:
        return ""

    text = html.unescape(bleach.clean(str(text).strip(), tags=[], strip=True))

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def _error(message: str, status_code: int, **extra):
    body = {"success": False, "error": message}
    body.update(extra)
    return body, status_code


def _error_for(e: FancamPrintError):
    """Map a service exception to a JSON error response."""
    if isinstance(e, PhotoNotFoundError):
        return _error(e.message, 404, photoId=e.photo_id)
    if isinstance(e, ConfigurationError):
        return _error("Printing is not configured", 503, setting=e.setting)
    if isinstance(e, PrintServiceError):
        return _error("Printer service request failed", 502, stage=e.stage)
    return _error(e.message, 500)


@print_api_bp.route("/api/print", methods=["POST"])
def submit_print():
    """
    Start printing the given photos.

    Body:
        {"photoIds": ["abc", ...], "printOptions": {...}, "printerEmail": "..."}

    Returns 202 with the batch id to poll.
    """
    data = request.get_json(silent=True) or {}
    photo_ids = data.get("photoIds")

    if not photo_ids or not isinstance(photo_ids, list):
        return _error("photoIds must be a non-empty list", 400)
    if len(photo_ids) > MAX_PHOTOS_PER_BATCH:
        return _error(f"At most {MAX_PHOTOS_PER_BATCH} photos per request", 400)

    options = data.get("printOptions") or {}
    if not isinstance(options, dict):
        return _error("printOptions must be an object", 400)

    settings = PrintSettings.from_dict(options)
    if settings.job_name:
        settings = PrintSettings.from_dict({
            **settings.to_dict(),
            "job_name": _sanitize_text(settings.job_name, MAX_JOB_NAME_LENGTH),
        })

    device_id = str(data.get("printerEmail") or "").strip() or None

    try:
        photo_source = current_app.config["PHOTO_SOURCE"]
        images = photo_source.load_many([str(photo_id) for photo_id in photo_ids])

        batch_service = current_app.config["BATCH_SERVICE"]
        batch_id = batch_service.submit_batch(device_id, images, settings)

    except FancamPrintError as e:
        logger.warning(f"Print request rejected: {e}")
        return _error_for(e)

    logger.info(f"Print batch {batch_id[:8]} accepted for {len(images)} photos")
    return {
        "success": True,
        "batchId": batch_id,
        "photoIds": photo_ids,
        "status": "printing",
    }, 202


@print_api_bp.route("/api/print/batches/<batch_id>", methods=["GET"])
def batch_status(batch_id: str):
    """Poll a background batch. Finished results are returned once."""
    batch_service = current_app.config["BATCH_SERVICE"]

    # A batch thread stores its result before leaving the active set, so once
    # it is no longer pending the result (if any) is already in the store.
    if batch_service.is_batch_pending(batch_id):
        return {"success": True, "complete": False, "batch": {"batch_id": batch_id, "status": "running"}}

    result = batch_service.get_result(batch_id)
    if result:
        return {"success": True, "complete": True, "batch": result.to_dict()}

    return _error("Unknown batch", 404, batchId=batch_id)


@print_api_bp.route("/api/print/jobs/<job_id>", methods=["GET"])
def job_status(job_id: str):
    """Read one job's current status from Epson Connect."""
    device_id = request.args.get("printerEmail") or None

    try:
        with current_app.config["PRINT_SERVICE_FACTORY"]() as print_service:
            job = print_service.check_print_job_status(job_id, device_id)
    except FancamPrintError as e:
        logger.error(f"Status check for job {job_id} failed: {e}")
        return _error_for(e)

    return {"success": True, "job": job.to_dict()}


@print_api_bp.route("/api/print/jobs/<job_id>", methods=["DELETE"])
def cancel_job(job_id: str):
    """Cancel one job. Provider failures are reported as cancelled=false."""
    device_id = request.args.get("printerEmail") or None

    try:
        with current_app.config["PRINT_SERVICE_FACTORY"]() as print_service:
            cancelled = print_service.cancel_print_job(job_id, device_id)
    except ConfigurationError as e:
        return _error_for(e)

    return {"success": cancelled, "cancelled": cancelled, "jobId": job_id}
