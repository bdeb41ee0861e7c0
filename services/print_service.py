"""
Print orchestration service.

Drives one image through the Epson Connect pipeline, strictly in order:

    1. authenticate     (or reuse cached credentials, if enabled)
    2. create job
    3. upload file
    4. execute print
    5. read status      (returned to the caller)

Any stage error aborts the remaining stages and propagates unchanged. No
compensating cancel is attempted; a job created before a failed upload is
left for the provider to expire.

Batches run print_photo once per image, sequentially, with a fixed pause
between items. A failing item is recorded as a failed PrintOutcome and the
batch moves on to the next image.

Usage:
    service = PrintService(EpsonSettings.from_config(Config))

    job = service.print_photo(device, image_bytes, "photo.jpg", PrintSettings(copies=2))

    outcomes = service.print_multiple_photos(device, [PrintImage(data, "a.jpg"), ...])
    failed = [o for o in outcomes if not o.succeeded]

    job = service.check_print_job_status(job.job_id)
    cancelled = service.cancel_print_job(job.job_id)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

from core.epson_client import EpsonConnectClient
from core.exceptions import ConfigurationError, PrintServiceError
from core.settings import EpsonSettings
from core.token_cache import TokenCache
from models.print_job import Credentials, PrintImage, PrintJob, PrintOutcome
from models.print_settings import PrintSettings
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class PrintService:
    """
    Orchestrates print submissions against one Epson Connect account.

    Attributes:
        settings: Epson Connect settings in use
        token_cache: Per-device credential cache (disabled when ttl is 0)
    """

    def __init__(
        self,
        settings: EpsonSettings,
        client: Optional[EpsonConnectClient] = None,
        token_cache: Optional[TokenCache] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger_: Optional[logging.Logger] = None,
    ):
        """
        Initialize print service.

        Args:
            settings: Epson Connect settings
            client: API client (created from settings if not provided)
            token_cache: Credential cache (built from settings if not provided)
            sleep: Sleep function for the inter-item batch delay
            logger_: Logger (module logger if not provided)

        Raises:
            ConfigurationError: If client id or secret is missing
        """
        if not settings.client_id:
            raise ConfigurationError("EPSON_CLIENT_ID")
        if not settings.client_secret:
            raise ConfigurationError("EPSON_CLIENT_SECRET")

        self._settings = settings
        self._logger = logger_ or logger
        self._client = client or EpsonConnectClient(settings, logger=self._logger)
        self._token_cache = token_cache or TokenCache(settings.token_cache_seconds)
        self._sleep = sleep or time.sleep

    @property
    def settings(self) -> EpsonSettings:
        return self._settings

    @property
    def token_cache(self) -> TokenCache:
        return self._token_cache

    def close(self) -> None:
        """Release the API client's HTTP session."""
        self._client.close()

    def __enter__(self) -> "PrintService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # SINGLE IMAGE
    # =========================================================================

    def print_photo(
        self,
        device_id: Optional[str],
        image_data: bytes,
        file_name: str,
        settings: Optional[PrintSettings] = None,
    ) -> PrintJob:
        """
        Print one image and return the job's status after the print call.

        Args:
            device_id: Printer's Epson Connect address (configured device if None)
            image_data: Raw image bytes
            file_name: Original file name (extension decides the upload name)
            settings: Print options (defaults for omitted fields)

        Returns:
            PrintJob snapshot read right after printing started

        Raises:
            ConfigurationError: If no device id is available
            PrintServiceError: Subclass for the stage that failed
        """
        device = self._resolve_device(device_id)
        settings = settings or PrintSettings()

        self._logger.info(f"Printing '{file_name}' ({len(image_data)} bytes) on {device}")

        credentials = self._credentials(device)
        try:
            ticket = self._client.create_job(credentials, settings)
            self._client.upload_file(ticket.upload_uri, image_data, file_name)
            self._client.execute_print(credentials, ticket.job_id)
            job = self._client.get_job_status(credentials, ticket.job_id)
        except PrintServiceError as e:
            self._forget_rejected_token(device, e)
            raise

        self._logger.info(f"'{file_name}' submitted as job {job.job_id} ({job.status})")
        return job

    # =========================================================================
    # BATCH
    # =========================================================================

    def print_multiple_photos(
        self,
        device_id: Optional[str],
        images: Iterable[PrintImage],
        settings: Optional[PrintSettings] = None,
    ) -> List[PrintOutcome]:
        """
        Print several images one after another.

        Each image gets its own full pipeline run. Items are processed in
        input order with ``batch_delay_seconds`` between them. A
        PrintServiceError on one item is recorded and the batch continues.

        Args:
            device_id: Printer's Epson Connect address (configured device if None)
            images: Images to print
            settings: Print options shared by every image

        Returns:
            One PrintOutcome per image, in input order

        Raises:
            ConfigurationError: If no device id is available
        """
        device = self._resolve_device(device_id)
        images = list(images)
        outcomes: List[PrintOutcome] = []

        self._logger.info(f"Printing batch of {len(images)} images on {device}")

        for index, image in enumerate(images, start=1):
            if index > 1 and self._settings.batch_delay_seconds > 0:
                self._sleep(self._settings.batch_delay_seconds)

            try:
                job = self.print_photo(device, image.data, image.file_name, settings)
            except PrintServiceError as e:
                self._logger.warning(
                    f"Item {index}/{len(images)} '{image.file_name}' failed at {e.stage}: {e.message}"
                )
                outcomes.append(PrintOutcome.failure(image.file_name, e.message, e.stage))
                continue

            outcomes.append(PrintOutcome.success(image.file_name, job))

        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        self._logger.info(f"Batch finished: {succeeded}/{len(images)} images submitted")
        return outcomes

    # =========================================================================
    # JOB QUERIES
    # =========================================================================

    def check_print_job_status(self, job_id: str, device_id: Optional[str] = None) -> PrintJob:
        """
        Authenticate and read one job's status.

        Raises:
            PrintServiceError: If authentication or the status read fails
        """
        device = self._resolve_device(device_id)
        credentials = self._credentials(device)
        try:
            return self._client.get_job_status(credentials, job_id)
        except PrintServiceError as e:
            self._forget_rejected_token(device, e)
            raise

    def cancel_print_job(self, job_id: str, device_id: Optional[str] = None) -> bool:
        """
        Authenticate and cancel a job.

        Returns:
            True if the provider accepted the cancel, False on any
            Epson Connect failure (logged)
        """
        device = self._resolve_device(device_id)
        try:
            credentials = self._credentials(device)
            self._client.cancel_job(credentials, job_id)
        except PrintServiceError as e:
            self._forget_rejected_token(device, e)
            self._logger.error(f"Cancel of job {job_id} failed: {e}")
            return False

        self._logger.info(f"Job {job_id} cancelled")
        return True

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_device(self, device_id: Optional[str]) -> str:
        device = device_id or self._settings.device
        if not device:
            raise ConfigurationError("EPSON_DEVICE")
        return device

    def _credentials(self, device: str) -> Credentials:
        cached = self._token_cache.get(device)
        if cached is not None:
            self._logger.debug(f"Reusing cached token for {device}")
            return cached

        credentials = self._client.authenticate(device)
        self._token_cache.put(device, credentials)
        return credentials

    def _forget_rejected_token(self, device: str, error: PrintServiceError) -> None:
        if error.is_unauthorized and self._token_cache.enabled:
            self._logger.info(f"Token for {device} rejected, dropping cached credentials")
            self._token_cache.invalidate(device)
