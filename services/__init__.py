"""
Services layer for the Fancam print service.

- PrintService: Print pipeline orchestration (single image, batch, status, cancel)
- BatchPrintService: Background batch threads and result store

Thread Model:
    Main Thread (Flask)
    └── BatchPrintService threads (one per batch, each with its own PrintService)
"""

from .print_service import PrintService
from .batch_service import BatchPrintService, BatchResultStore

__all__ = [
    "PrintService",
    "BatchPrintService",
    "BatchResultStore",
]
