"""
Core module for the Fancam print service.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- settings: Typed Epson Connect settings
- retry: Bounded retry for transient HTTP failures
- token_cache: Per-device bearer token cache
- epson_client: Epson Connect printing API client

Only exceptions and settings are re-exported here. The client and token
cache depend on models, which in turn import core.settings.
"""

from .exceptions import (
    FancamPrintError,
    ConfigurationError,
    PhotoNotFoundError,
    PrintServiceError,
    AuthenticationError,
    JobCreationError,
    UploadError,
    PrintTriggerError,
    JobStatusError,
    JobCancelError,
)
from .settings import EpsonSettings

__all__ = [
    "FancamPrintError",
    "ConfigurationError",
    "PhotoNotFoundError",
    "PrintServiceError",
    "AuthenticationError",
    "JobCreationError",
    "UploadError",
    "PrintTriggerError",
    "JobStatusError",
    "JobCancelError",
    "EpsonSettings",
]
