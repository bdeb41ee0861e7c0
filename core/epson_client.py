"""
Epson Connect printing API client.

One method per remote call of the print pipeline:

    authenticate()   POST /oauth2/auth/token?subject=printer  -> Credentials
    create_job()     POST /printers/{id}/jobs                 -> JobTicket
    upload_file()    POST <upload_uri>&File=1.<ext>           -> True
    execute_print()  POST /printers/{id}/jobs/{job}/print     -> dict
    get_job_status() GET  /printers/{id}/jobs/{job}           -> PrintJob
    cancel_job()     DELETE /printers/{id}/jobs/{job}         -> True

Each method makes exactly one logical request (plus retries if a RetryPolicy
allows them; create_job and execute_print are never replayed after a read
timeout) and raises the stage-specific PrintServiceError subclass on
failure. Sequencing, token reuse and batching live in PrintService.

THREAD SAFETY:
    A requests.Session is not guaranteed thread-safe. Each thread that
    prints should own its own EpsonConnectClient.

Usage:
    client = EpsonConnectClient(EpsonSettings.from_config(Config))

    credentials = client.authenticate("printer@print.epsonconnect.com")
    ticket = client.create_job(credentials, PrintSettings(copies=2))
    client.upload_file(ticket.upload_uri, image_bytes, "photo.jpg")
    client.execute_print(credentials, ticket.job_id)
    job = client.get_job_status(credentials, ticket.job_id)
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Callable, Dict, Optional, Type

import requests

from .exceptions import (
    AuthenticationError,
    JobCancelError,
    JobCreationError,
    JobStatusError,
    PrintServiceError,
    PrintTriggerError,
    UploadError,
)
from .retry import RetryPolicy, send_with_retry
from .settings import EpsonSettings
from models.print_job import Credentials, JobTicket, PrintJob
from models.print_settings import PrintSettings

ACCEPT_JSON = "application/json;charset=utf-8"


def upload_file_name(file_name: str) -> str:
    """
    Name the provider expects for the uploaded file.

    Always "1" plus the original extension: "photo.png" -> "1.png".
    A name without an extension uploads as "1".
    """
    _, extension = os.path.splitext(os.path.basename(file_name))
    return "1" + extension


def build_upload_url(upload_uri: str, file_name: str) -> str:
    """Append the File= query parameter to a one-time upload URI."""
    separator = "&" if "?" in upload_uri else "?"
    return f"{upload_uri}{separator}File={upload_file_name(file_name)}"


class EpsonConnectClient:
    """
    Thin wrapper around the Epson Connect printing REST API.

    Attributes:
        settings: Host, credentials and defaults in use
    """

    def __init__(
        self,
        settings: EpsonSettings,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Epson Connect settings
            session: requests.Session to send with (created if not provided)
            retry_policy: Retry policy (built from settings if not provided)
            logger: Logger instance (creates default if not provided)
            sleep: Sleep function used between retries (injectable for tests)
        """
        self._settings = settings
        self._session = session or requests.Session()
        self._retry_policy = retry_policy or RetryPolicy.from_retries(
            settings.max_retries, settings.retry_backoff_seconds
        )
        self._logger = logger or logging.getLogger("fancam_print.core.epson_client")
        self._sleep = sleep

    @property
    def settings(self) -> EpsonSettings:
        return self._settings

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    # =========================================================================
    # PIPELINE CALLS
    # =========================================================================

    def authenticate(self, device_id: str) -> Credentials:
        """
        Exchange the device identifier for a bearer token and printer id.

        Args:
            device_id: Printer's Epson Connect email address

        Returns:
            Credentials for this run

        Raises:
            AuthenticationError: On transport failure, non-2xx or bad body
        """
        basic = base64.b64encode(
            f"{self._settings.client_id}:{self._settings.client_secret}".encode("utf-8")
        ).decode("ascii")

        url = f"{self._settings.base_url}/oauth2/auth/token"
        self._logger.info(f"Authenticating device {device_id}")

        response = self._send(
            "POST",
            url,
            AuthenticationError,
            params={"subject": "printer"},
            data={"grant_type": "password", "username": device_id, "password": ""},
            headers={
                "Accept": ACCEPT_JSON,
                "Authorization": f"Basic {basic}",
                "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
            },
        )
        credentials = Credentials.from_response(self._json(response, AuthenticationError))
        self._logger.debug(f"Authenticated, printer_id={credentials.printer_id}")
        return credentials

    def create_job(self, credentials: Credentials, settings: Optional[PrintSettings] = None) -> JobTicket:
        """
        Create a print job and obtain its one-time upload URI.

        Args:
            credentials: From authenticate()
            settings: Caller's print options (defaults applied to omitted fields)

        Returns:
            JobTicket with job id and upload URI

        Raises:
            JobCreationError: On transport failure, non-2xx or bad body
        """
        payload = (settings or PrintSettings()).to_job_payload(self._settings)
        self._logger.info(
            f"Creating job '{payload['job_name']}' on printer {credentials.printer_id}"
        )
        self._logger.debug(f"Job payload: {payload}")

        response = self._send(
            "POST",
            self._jobs_url(credentials),
            JobCreationError,
            idempotent=False,
            json=payload,
            headers=self._bearer_headers(credentials, json_body=True),
        )
        ticket = JobTicket.from_response(self._json(response, JobCreationError))
        self._logger.info(f"Job created: {ticket.job_id}")
        return ticket

    def upload_file(self, upload_uri: str, data: bytes, file_name: str) -> bool:
        """
        Upload the image bytes to the job's upload URI.

        Args:
            upload_uri: From create_job()
            data: Raw file bytes
            file_name: Caller's file name (only its extension is used)

        Returns:
            True (anything but HTTP 200 raises)

        Raises:
            UploadError: On transport failure or any status other than 200
        """
        url = build_upload_url(upload_uri, file_name)
        self._logger.info(f"Uploading {len(data)} bytes as {upload_file_name(file_name)}")

        response = self._send(
            "POST",
            url,
            UploadError,
            data=data,
            headers={
                "Accept": ACCEPT_JSON,
                "Content-Length": str(len(data)),
                "Content-Type": "application/octet-stream",
            },
            success=lambda r: r.status_code == 200,
        )
        self._logger.debug(f"Upload complete (HTTP {response.status_code})")
        return True

    def execute_print(self, credentials: Credentials, job_id: str) -> Dict[str, Any]:
        """
        Start printing an uploaded job.

        Returns:
            Provider response body ({} when empty)

        Raises:
            PrintTriggerError: On transport failure or non-2xx
        """
        self._logger.info(f"Starting print for job {job_id}")
        response = self._send(
            "POST",
            f"{self._job_url(credentials, job_id)}/print",
            PrintTriggerError,
            job_id=job_id,
            idempotent=False,
            json={},
            headers=self._bearer_headers(credentials, json_body=True),
        )
        result = self._json(response, PrintTriggerError, job_id=job_id, allow_empty=True)
        self._logger.debug(f"Print response for job {job_id}: {result}")
        return result

    def get_job_status(self, credentials: Credentials, job_id: str) -> PrintJob:
        """
        Read the job's current status (single point-in-time read).

        Raises:
            JobStatusError: On transport failure, non-2xx or bad body
        """
        response = self._send(
            "GET",
            self._job_url(credentials, job_id),
            JobStatusError,
            job_id=job_id,
            headers=self._bearer_headers(credentials),
        )
        job = PrintJob.from_response(self._json(response, JobStatusError, job_id=job_id), job_id)
        self._logger.info(f"Job {job.job_id} status: {job.status}")
        return job

    def cancel_job(self, credentials: Credentials, job_id: str) -> bool:
        """
        Cancel (delete) a job.

        Returns:
            True

        Raises:
            JobCancelError: On transport failure or non-2xx
        """
        self._logger.info(f"Cancelling job {job_id}")
        self._send(
            "DELETE",
            self._job_url(credentials, job_id),
            JobCancelError,
            job_id=job_id,
            headers=self._bearer_headers(credentials),
        )
        return True

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _jobs_url(self, credentials: Credentials) -> str:
        return f"{self._settings.base_url}/printers/{credentials.printer_id}/jobs"

    def _job_url(self, credentials: Credentials, job_id: str) -> str:
        return f"{self._jobs_url(credentials)}/{job_id}"

    @staticmethod
    def _bearer_headers(credentials: Credentials, json_body: bool = False) -> Dict[str, str]:
        headers = {
            "Accept": ACCEPT_JSON,
            "Authorization": f"Bearer {credentials.token}",
        }
        if json_body:
            headers["Content-Type"] = "application/json; charset=utf-8"
        return headers

    def _send(
        self,
        method: str,
        url: str,
        error_cls: Type[PrintServiceError],
        job_id: Optional[str] = None,
        success: Optional[Callable[[requests.Response], bool]] = None,
        idempotent: bool = True,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Send one request (with retries) and check its status.

        Raises:
            error_cls: On transport failure or unsuccessful status
        """
        kwargs.setdefault("timeout", self._settings.request_timeout_seconds)
        success = success or (lambda r: 200 <= r.status_code < 300)

        try:
            response = send_with_retry(
                lambda: self._session.request(method, url, **kwargs),
                self._retry_policy,
                self._logger,
                error_cls.stage,
                sleep=self._sleep,
                idempotent=idempotent,
            )
        except requests.RequestException as e:
            self._logger.error(f"{error_cls.stage} failed: {e}")
            raise error_cls(f"{error_cls.stage} request failed: {e}", job_id=job_id) from e

        if not success(response):
            body = response.text[:500] if response.text else ""
            self._logger.error(f"{error_cls.stage} failed: HTTP {response.status_code} {body}")
            raise error_cls(
                f"{error_cls.stage} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                job_id=job_id,
                details={"body": body} if body else None,
            )

        return response

    def _json(
        self,
        response: requests.Response,
        error_cls: Type[PrintServiceError],
        job_id: Optional[str] = None,
        allow_empty: bool = False,
    ) -> Dict[str, Any]:
        """Decode a JSON object body, raising error_cls if it is not one."""
        if allow_empty and not response.content:
            return {}

        try:
            data = response.json()
        except ValueError as e:
            if allow_empty:
                return {}
            raise error_cls(
                f"{error_cls.stage} returned invalid JSON: {e}",
                status_code=response.status_code,
                job_id=job_id,
            ) from e

        if not isinstance(data, dict):
            if allow_empty:
                return {}
            raise error_cls(
                f"{error_cls.stage} returned a non-object body",
                status_code=response.status_code,
                job_id=job_id,
            )
        return data
