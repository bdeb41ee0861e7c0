"""
Background print batches with a thread per batch.

The /api/print route must answer quickly, but a batch of N photos takes at
least N pipeline runs plus the inter-item delay. Each batch therefore runs
in its own daemon thread with its own PrintService (and so its own HTTP
session). Results come back through BatchResultStore.

Thread Safety:
    - Images and settings are immutable (frozen dataclasses)
    - Each batch thread builds its own PrintService via the factory
    - The token cache, if enabled, is the only object shared between
      batches and is lock-guarded
    - BatchResultStore uses threading.Lock for all access

Flow:
    1. Route resolves photo bytes and calls submit_batch()
    2. Batch thread runs PrintService.print_multiple_photos()
    3. Batch thread stores a BatchResult
    4. Client polls GET /api/print/batches/<batch_id>

Usage:
    batch_service = BatchPrintService(lambda: PrintService(settings, token_cache=cache))
    batch_id = batch_service.submit_batch(device, images, settings)

    result = batch_service.get_result(batch_id)   # None while running
    batch_service.shutdown()
"""

from __future__ import annotations

import threading
import time
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models.batch_result import BatchResult
from models.print_job import PrintImage
from models.print_settings import PrintSettings
from services.print_service import PrintService
from logging_config import get_logger, get_batch_logger, set_thread_name


# Module logger
logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 500
DEFAULT_MAX_AGE_SECONDS = 3600.0


class BatchResultStore:
    """
    Thread-safe storage for batch results.

    Batch threads WRITE results here, request handlers READ them.
    get_result() removes the result (consume-once); peek_result() does not.

    Results nobody collects are dropped once they are older than
    ``max_age_seconds``, and the oldest go first when more than
    ``max_results`` are held.
    """

    def __init__(
        self,
        max_results: int = DEFAULT_MAX_RESULTS,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._results: "OrderedDict[str, Tuple[BatchResult, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._max_results = max_results
        self._max_age = max_age_seconds
        self._clock = clock or time.monotonic

    def put_result(self, result: BatchResult) -> None:
        with self._lock:
            self._results.pop(result.batch_id, None)
            self._results[result.batch_id] = (result, self._clock())
            self._prune()
            logger.debug(f"Stored result for batch {result.batch_id[:8]}")

    def get_result(self, batch_id: str) -> Optional[BatchResult]:
        """Get and remove a batch result. None if not available yet."""
        with self._lock:
            self._prune()
            entry = self._results.pop(batch_id, None)
            return entry[0] if entry else None

    def peek_result(self, batch_id: str) -> Optional[BatchResult]:
        """Check if a result exists without removing it."""
        with self._lock:
            self._prune()
            entry = self._results.get(batch_id)
            return entry[0] if entry else None

    def clear(self) -> int:
        """Remove all stored results. Returns the number removed."""
        with self._lock:
            count = len(self._results)
            self._results.clear()
            logger.info(f"Cleared {count} batch results from store")
            return count

    def _prune(self) -> None:
        # Caller holds self._lock; entries are in insertion (= storage) order
        cutoff = self._clock() - self._max_age
        expired = 0
        while self._results:
            _, (_, stored_at) = next(iter(self._results.items()))
            if stored_at > cutoff and len(self._results) <= self._max_results:
                break
            self._results.popitem(last=False)
            expired += 1
        if expired:
            logger.info(f"Dropped {expired} uncollected batch results")


class BatchPrintService:
    """
    Runs print batches in background threads.

    Attributes:
        result_store: BatchResultStore for reading batch results
    """

    def __init__(
        self,
        service_factory: Callable[[], PrintService],
        result_store: Optional[BatchResultStore] = None,
    ):
        """
        Initialize batch service.

        Args:
            service_factory: Builds a fresh PrintService for each batch thread
            result_store: Where finished batches are kept (default limits if not provided)
        """
        self._service_factory = service_factory
        self._result_store = result_store or BatchResultStore()

        # Track active batch threads for cleanup
        self._active_threads: Dict[str, threading.Thread] = {}
        self._threads_lock = threading.Lock()

        logger.info("BatchPrintService initialized")

    @property
    def result_store(self) -> BatchResultStore:
        return self._result_store

    def submit_batch(
        self,
        device_id: Optional[str],
        images: Sequence[PrintImage],
        settings: Optional[PrintSettings] = None,
        batch_id: Optional[str] = None,
    ) -> str:
        """
        Start printing a batch in the background.

        Args:
            device_id: Printer's Epson Connect address (configured device if None)
            images: Images to print, in order
            settings: Print options shared by every image
            batch_id: Optional batch ID (generated if not provided)

        Returns:
            batch_id (UUID string). Poll get_result(batch_id) for completion.
        """
        if batch_id is None:
            batch_id = str(uuid.uuid4())

        images = list(images)
        submitted_at = datetime.now(timezone.utc)
        logger.info(f"Submitting batch {batch_id[:8]} with {len(images)} images")

        thread = threading.Thread(
            target=self._batch_thread_main,
            args=(batch_id, device_id, images, settings, submitted_at),
            name=f"Batch-{batch_id[:8]}",
            daemon=True
        )

        with self._threads_lock:
            self._active_threads[batch_id] = thread

        thread.start()
        return batch_id

    def get_result(self, batch_id: str) -> Optional[BatchResult]:
        """Get batch result (consumes on read). None while still running."""
        return self._result_store.get_result(batch_id)

    def is_batch_pending(self, batch_id: str) -> bool:
        """True if the batch thread is still running."""
        with self._threads_lock:
            thread = self._active_threads.get(batch_id)
            return thread is not None and thread.is_alive()

    def wait_for_batch(self, batch_id: str, timeout: Optional[float] = None) -> bool:
        """
        Block until a batch thread exits.

        Returns:
            True if the thread is gone (or unknown), False on timeout
        """
        with self._threads_lock:
            thread = self._active_threads.get(batch_id)
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Wait for active batch threads during application shutdown."""
        with self._threads_lock:
            active = list(self._active_threads.items())

        if not active:
            logger.info("No active batch threads to wait for")
            return

        logger.info(f"Waiting for {len(active)} batch threads to complete...")

        for batch_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Batch thread {batch_id[:8]} did not complete in time")

        logger.info("Batch service shutdown complete")

    def _batch_thread_main(
        self,
        batch_id: str,
        device_id: Optional[str],
        images: List[PrintImage],
        settings: Optional[PrintSettings],
        submitted_at: datetime,
    ) -> None:
        """Body of a batch thread. Always stores a result."""
        set_thread_name(f"Batch-{batch_id[:8]}")
        batch_logger = get_batch_logger(batch_id)
        batch_logger.info(f"Batch thread starting ({len(images)} images)")

        service = None
        try:
            service = self._service_factory()
            outcomes = service.print_multiple_photos(device_id, images, settings)
            result = BatchResult.from_outcomes(batch_id, submitted_at, outcomes)
            batch_logger.info(f"Batch finished: status={result.status.value}, {result.notes}")

        except Exception as e:
            batch_logger.error(f"Batch failed: {e}", exc_info=True)
            result = BatchResult.create_failed(batch_id, submitted_at, str(e))

        finally:
            if service is not None:
                service.close()

        self._result_store.put_result(result)

        with self._threads_lock:
            self._active_threads.pop(batch_id, None)

        batch_logger.info("Batch thread exiting")
