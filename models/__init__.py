"""
Data models for the Fancam print service.

- PrintSettings: Caller's print options (frozen)
- Credentials, JobTicket, PrintJob: Parsed Epson Connect responses (frozen)
- PrintImage, PrintOutcome: Batch input item and per-item result (frozen)
- BatchResult: Result of a background batch
"""

from .print_settings import PrintSettings
from .print_job import Credentials, JobTicket, PrintJob, PrintImage, PrintOutcome
from .batch_result import BatchResult, BatchStatus

__all__ = [
    "PrintSettings",
    "Credentials",
    "JobTicket",
    "PrintJob",
    "PrintImage",
    "PrintOutcome",
    "BatchResult",
    "BatchStatus",
]
