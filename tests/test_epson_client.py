"""
Unit tests for the Epson Connect API client.

The HTTP session is a FakeEpsonTransport (see conftest.py); no network.
"""

import base64
from unittest.mock import MagicMock

import pytest
import requests

from conftest import JOB_ID, PRINTER_ID, UPLOAD_URI, DEVICE, make_response
from core.epson_client import EpsonConnectClient, build_upload_url, upload_file_name
from core.exceptions import (
    AuthenticationError,
    JobCancelError,
    JobCreationError,
    JobStatusError,
    PrintServiceError,
    PrintTriggerError,
    UploadError,
)
from core.retry import RetryPolicy
from models.print_job import Credentials
from models.print_settings import PrintSettings


BASE = "https://api.epsonconnect.com/api/1/printing"


@pytest.fixture
def client(epson_settings, transport, logger):
    return EpsonConnectClient(epson_settings, session=transport.session, logger=logger)


@pytest.fixture
def credentials():
    return Credentials(token="test_access_token", printer_id=PRINTER_ID)


class TestUploadFileName:
    """Remote file name is always "1" plus the original extension."""

    @pytest.mark.parametrize("file_name, expected", [
        ("photo.png", "1.png"),
        ("test-photo.jpg", "1.jpg"),
        ("IMG_0001.JPEG", "1.JPEG"),
        ("event/2026/crowd.shot.jpg", "1.jpg"),
        ("document.pdf", "1.pdf"),
        ("noextension", "1"),
    ])
    def test_upload_file_name(self, file_name, expected):
        assert upload_file_name(file_name) == expected

    def test_build_upload_url_appends_to_existing_query(self):
        url = build_upload_url(UPLOAD_URI, "photo.png")
        assert url == f"{UPLOAD_URI}&File=1.png"

    def test_build_upload_url_without_query(self):
        url = build_upload_url("https://upload.example.com/u", "a.jpg")
        assert url == "https://upload.example.com/u?File=1.jpg"


class TestAuthenticate:

    def test_authenticate_returns_credentials(self, client):
        credentials = client.authenticate(DEVICE)

        assert credentials.token == "test_access_token"
        assert credentials.printer_id == PRINTER_ID
        assert credentials.expires_in == 3600

    def test_authenticate_request_shape(self, client, transport):
        client.authenticate(DEVICE)

        call = transport.calls[0]
        assert call.args == ("POST", f"{BASE}/oauth2/auth/token")
        assert call.kwargs["params"] == {"subject": "printer"}
        assert call.kwargs["data"] == {
            "grant_type": "password",
            "username": DEVICE,
            "password": "",
        }

        expected = base64.b64encode(b"test-client-id:test-client-secret").decode("ascii")
        headers = call.kwargs["headers"]
        assert headers["Authorization"] == f"Basic {expected}"
        assert headers["Content-Type"].startswith("application/x-www-form-urlencoded")

    def test_authenticate_passes_timeout(self, client, transport, epson_settings):
        client.authenticate(DEVICE)
        assert transport.calls[0].kwargs["timeout"] == epson_settings.request_timeout_seconds

    def test_authenticate_non_2xx_raises(self, client, transport):
        transport.responses["authenticate"] = make_response(401, {"error": "invalid_client"})

        with pytest.raises(AuthenticationError) as exc_info:
            client.authenticate(DEVICE)

        assert exc_info.value.status_code == 401
        assert exc_info.value.stage == "authenticate"

    def test_authenticate_missing_subject_id_raises(self, client, transport):
        transport.responses["authenticate"] = make_response(200, {"access_token": "x"})

        with pytest.raises(AuthenticationError):
            client.authenticate(DEVICE)

    def test_authenticate_network_error_raises(self, client, transport):
        transport.responses["authenticate"] = requests.ConnectionError("connection refused")

        with pytest.raises(AuthenticationError) as exc_info:
            client.authenticate(DEVICE)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_authenticate_invalid_json_raises(self, client, transport):
        transport.responses["authenticate"] = make_response(200, content=b"<html>")

        with pytest.raises(AuthenticationError):
            client.authenticate(DEVICE)


class TestCreateJob:

    def test_create_job_returns_ticket(self, client, credentials):
        ticket = client.create_job(credentials)

        assert ticket.job_id == JOB_ID
        assert ticket.upload_uri == UPLOAD_URI

    def test_create_job_uses_defaults(self, client, transport, credentials):
        client.create_job(credentials)

        call = transport.calls[0]
        assert call.args == ("POST", f"{BASE}/printers/{PRINTER_ID}/jobs")
        assert call.kwargs["headers"]["Authorization"] == "Bearer test_access_token"
        assert call.kwargs["json"] == {
            "job_name": "Print Job",
            "print_mode": "document",
            "print_setting": {
                "media_size": "ms_a4",
                "media_type": "mt_plainpaper",
                "borderless": False,
                "print_quality": "normal",
                "source": "auto",
                "color_mode": "color",
                "reverse_order": False,
                "copies": 1,
                "collate": True,
            },
        }

    def test_create_job_passes_settings_through(self, client, transport, credentials):
        settings = PrintSettings(
            paper_size="ms_l",
            media_type="mt_photopaper",
            quality="high",
            borderless=True,
            copies=3,
            job_name="Fancam",
            print_mode="photo",
        )

        client.create_job(credentials, settings)

        body = transport.calls[0].kwargs["json"]
        assert body["job_name"] == "Fancam"
        assert body["print_mode"] == "photo"
        assert body["print_setting"]["media_size"] == "ms_l"
        assert body["print_setting"]["media_type"] == "mt_photopaper"
        assert body["print_setting"]["print_quality"] == "high"
        assert body["print_setting"]["borderless"] is True
        assert body["print_setting"]["copies"] == 3

    def test_create_job_non_2xx_raises(self, client, transport, credentials):
        transport.responses["create_job"] = make_response(400, {"code": "bad_media"})

        with pytest.raises(JobCreationError) as exc_info:
            client.create_job(credentials)

        assert exc_info.value.status_code == 400
        assert "bad_media" in exc_info.value.details["body"]

    def test_create_job_missing_upload_uri_raises(self, client, transport, credentials):
        transport.responses["create_job"] = make_response(201, {"id": JOB_ID})

        with pytest.raises(JobCreationError):
            client.create_job(credentials)


class TestUploadFile:

    def test_upload_sends_bytes_with_index_name(self, client, transport):
        data = b"mock-image-data"

        assert client.upload_file(UPLOAD_URI, data, "test-photo.png") is True

        call = transport.calls[0]
        assert call.args == ("POST", f"{UPLOAD_URI}&File=1.png")
        assert call.kwargs["data"] == data
        assert call.kwargs["headers"]["Content-Type"] == "application/octet-stream"
        assert call.kwargs["headers"]["Content-Length"] == str(len(data))
        assert "Authorization" not in call.kwargs["headers"]

    def test_upload_requires_exactly_200(self, client, transport):
        transport.responses["upload"] = make_response(201)

        with pytest.raises(UploadError) as exc_info:
            client.upload_file(UPLOAD_URI, b"x", "a.jpg")

        assert exc_info.value.status_code == 201

    def test_upload_failure_raises(self, client, transport):
        transport.responses["upload"] = make_response(413, content=b"too large")

        with pytest.raises(UploadError):
            client.upload_file(UPLOAD_URI, b"x", "a.jpg")


class TestPrintStatusCancel:

    def test_execute_print(self, client, transport, credentials):
        result = client.execute_print(credentials, JOB_ID)

        call = transport.calls[0]
        assert call.args == ("POST", f"{BASE}/printers/{PRINTER_ID}/jobs/{JOB_ID}/print")
        assert call.kwargs["json"] == {}
        assert result == {"success": True}

    def test_execute_print_empty_body(self, client, transport, credentials):
        transport.responses["print"] = make_response(202)

        assert client.execute_print(credentials, JOB_ID) == {}

    def test_execute_print_failure_raises(self, client, transport, credentials):
        transport.responses["print"] = make_response(409, {"code": "job_not_uploaded"})

        with pytest.raises(PrintTriggerError) as exc_info:
            client.execute_print(credentials, JOB_ID)

        assert exc_info.value.job_id == JOB_ID

    def test_get_job_status(self, client, transport, credentials):
        job = client.get_job_status(credentials, JOB_ID)

        assert transport.calls[0].args == ("GET", f"{BASE}/printers/{PRINTER_ID}/jobs/{JOB_ID}")
        assert job.job_id == JOB_ID
        assert job.status == "processing"
        assert job.created_at == "2023-01-01T00:00:00Z"

    def test_get_job_status_echoes_status_verbatim(self, client, transport, credentials):
        transport.responses["status"] = make_response(200, {"id": JOB_ID, "status": "Pending_Print"})

        assert client.get_job_status(credentials, JOB_ID).status == "Pending_Print"

    def test_get_job_status_failure_raises(self, client, transport, credentials):
        transport.responses["status"] = make_response(404, {"code": "job_not_found"})

        with pytest.raises(JobStatusError):
            client.get_job_status(credentials, JOB_ID)

    def test_cancel_job(self, client, transport, credentials):
        assert client.cancel_job(credentials, JOB_ID) is True
        assert transport.calls[0].args == ("DELETE", f"{BASE}/printers/{PRINTER_ID}/jobs/{JOB_ID}")

    def test_cancel_job_failure_raises(self, client, transport, credentials):
        transport.responses["cancel"] = make_response(500)

        with pytest.raises(JobCancelError):
            client.cancel_job(credentials, JOB_ID)


class TestClientRetries:

    def test_transient_error_is_retried(self, epson_settings, transport, logger):
        sleep = MagicMock()
        client = EpsonConnectClient(
            epson_settings,
            session=transport.session,
            retry_policy=RetryPolicy(max_attempts=3, backoff_seconds=0.5),
            logger=logger,
            sleep=sleep,
        )
        transport.responses["status"] = [
            requests.Timeout("read timed out"),
            make_response(503),
            make_response(200, {"id": JOB_ID, "status": "completed"}),
        ]

        job = client.get_job_status(Credentials("t", PRINTER_ID), JOB_ID)

        assert job.status == "completed"
        assert len(transport.calls) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_provider_rejection_is_not_retried(self, epson_settings, transport, logger):
        sleep = MagicMock()
        client = EpsonConnectClient(
            epson_settings,
            session=transport.session,
            retry_policy=RetryPolicy(max_attempts=3),
            logger=logger,
            sleep=sleep,
        )
        transport.responses["create_job"] = make_response(400, {"code": "invalid"})

        with pytest.raises(JobCreationError):
            client.create_job(Credentials("t", PRINTER_ID))

        assert len(transport.calls) == 1
        sleep.assert_not_called()

    @pytest.mark.parametrize("stage, call", [
        ("create_job", lambda c: c.create_job(Credentials("t", PRINTER_ID))),
        ("print", lambda c: c.execute_print(Credentials("t", PRINTER_ID), JOB_ID)),
    ])
    def test_read_timeout_on_job_creating_calls_not_retried(self, epson_settings, transport, logger, stage, call):
        client = EpsonConnectClient(
            epson_settings,
            session=transport.session,
            retry_policy=RetryPolicy(max_attempts=3),
            logger=logger,
            sleep=MagicMock(),
        )
        transport.responses[stage] = [
            requests.exceptions.ReadTimeout("read timed out"),
            transport.responses[stage],
        ]

        with pytest.raises(PrintServiceError) as exc_info:
            call(client)

        assert exc_info.value.stage == stage
        assert len(transport.calls_for(stage)) == 1

    def test_connect_timeout_on_create_job_is_retried(self, epson_settings, transport, logger):
        client = EpsonConnectClient(
            epson_settings,
            session=transport.session,
            retry_policy=RetryPolicy(max_attempts=3),
            logger=logger,
            sleep=MagicMock(),
        )
        transport.responses["create_job"] = [
            requests.exceptions.ConnectTimeout("connect timed out"),
            transport.responses["create_job"],
        ]

        ticket = client.create_job(Credentials("t", PRINTER_ID))

        assert ticket.job_id == JOB_ID
        assert len(transport.calls_for("create_job")) == 2

    def test_default_policy_is_single_attempt(self, client, transport):
        transport.responses["authenticate"] = make_response(503)

        with pytest.raises(AuthenticationError) as exc_info:
            client.authenticate(DEVICE)

        assert exc_info.value.status_code == 503
        assert len(transport.calls) == 1
