"""
Custom exceptions for the Fancam print service.

Exception Hierarchy:
    FancamPrintError (base)
    ├── ConfigurationError   - Missing credentials or device (startup/runtime)
    ├── PhotoNotFoundError   - Requested photo is not in the photo folder
    └── PrintServiceError    - An Epson Connect call failed
        ├── AuthenticationError  - Token exchange failed
        ├── JobCreationError     - Job creation rejected or malformed
        ├── UploadError          - Binary upload did not return 200
        ├── PrintTriggerError    - /print call failed
        ├── JobStatusError       - Status read failed or malformed
        └── JobCancelError       - DELETE on the job failed

Usage:
    Stage errors abort the print pipeline and propagate to the caller.
    Routes catch FancamPrintError and answer with a JSON error body.
"""

from typing import Optional, Dict, Any


class FancamPrintError(Exception):
    """
    Base exception for all print service errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(FancamPrintError):
    """
    A required Epson Connect setting is missing.

    Typical causes:
    - EPSON_CLIENT_ID / EPSON_CLIENT_SECRET not set in .env
    - No device identifier given and EPSON_DEVICE not set
    """

    def __init__(self, setting: str):
        message = f"Missing required setting: {setting}"
        details = {
            "setting": setting,
            "resolution": f"Set {setting} in the environment or .env file"
        }
        super().__init__(message, details)
        self.setting = setting


class PhotoNotFoundError(FancamPrintError):
    """The requested photo could not be found in the photo folder."""

    def __init__(self, photo_id: str):
        super().__init__(f"Photo not found: {photo_id}", {"photo_id": photo_id})
        self.photo_id = photo_id


# =============================================================================
# EPSON CONNECT ERRORS - One per pipeline stage
# =============================================================================

class PrintServiceError(FancamPrintError):
    """
    Base class for Epson Connect call failures.

    Attributes:
        stage: Pipeline stage that failed ("authenticate", "create_job", ...)
        status_code: HTTP status code, or None for transport failures
    """

    stage = "unknown"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        job_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = dict(details or {})
        error_details["stage"] = self.stage
        if status_code is not None:
            error_details["status_code"] = status_code
        if job_id:
            error_details["job_id"] = job_id
        super().__init__(message, error_details)
        self.status_code = status_code
        self.job_id = job_id

    @property
    def is_unauthorized(self) -> bool:
        """True when the provider rejected the bearer token."""
        return self.status_code == 401


class AuthenticationError(PrintServiceError):
    """Token exchange failed (bad credentials, network error, non-2xx)."""

    stage = "authenticate"


class JobCreationError(PrintServiceError):
    """Job creation returned non-2xx or lacked an id / upload URI."""

    stage = "create_job"


class UploadError(PrintServiceError):
    """The upload URI did not answer 200."""

    stage = "upload"


class PrintTriggerError(PrintServiceError):
    """The /print call on a job failed."""

    stage = "print"


class JobStatusError(PrintServiceError):
    """Reading a job's status failed or returned an unusable body."""

    stage = "status"


class JobCancelError(PrintServiceError):
    """Deleting a job failed."""

    stage = "cancel"
