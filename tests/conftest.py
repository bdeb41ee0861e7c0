"""
Shared fixtures: Epson settings and a fake Epson Connect transport.

The fake transport is a MagicMock standing in for requests.Session. Its
``request`` method routes each call to a canned requests.Response by URL,
so tests can assert on the exact order and arguments of outbound calls.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
import requests

from core.settings import EpsonSettings


JOB_ID = "job_123456789"
PRINTER_ID = "test_printer_id"
UPLOAD_URI = "https://upload.epsonconnect.com/upload?Key=abc123"
DEVICE = "printer@print.epsonconnect.com"


def make_response(status_code=200, json_body=None, content=None):
    """Build a real requests.Response with the given status and body."""
    response = requests.Response()
    response.status_code = status_code
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = content or b""
    response.encoding = "utf-8"
    return response


def stage_of(method, url):
    """Name the pipeline stage a request belongs to."""
    if "/oauth2/auth/token" in url:
        return "authenticate"
    if "File=" in url:
        return "upload"
    if method == "POST" and url.endswith("/print"):
        return "print"
    if method == "POST" and url.endswith("/jobs"):
        return "create_job"
    if method == "GET":
        return "status"
    if method == "DELETE":
        return "cancel"
    return "unknown"


def default_responses():
    return {
        "authenticate": make_response(200, {
            "access_token": "test_access_token",
            "refresh_token": "test_refresh_token",
            "expires_in": 3600,
            "subject_id": PRINTER_ID,
            "subject_type": "printer",
            "token_type": "bearer",
        }),
        "create_job": make_response(201, {"id": JOB_ID, "upload_uri": UPLOAD_URI}),
        "upload": make_response(200),
        "print": make_response(202, {"success": True}),
        "status": make_response(200, {
            "id": JOB_ID,
            "status": "processing",
            "created_at": "2023-01-01T00:00:00Z",
            "updated_at": "2023-01-01T00:00:01Z",
        }),
        "cancel": make_response(204),
    }


class FakeEpsonTransport:
    """
    Routes session.request calls to per-stage responses.

    A stage's entry may be a Response, an exception instance (raised), or a
    list of either (consumed one per call, last one repeats).
    """

    def __init__(self):
        self.responses = default_responses()
        self.session = MagicMock(spec=requests.Session)
        self.session.request.side_effect = self._route

    def _route(self, method, url, **kwargs):
        entry = self.responses[stage_of(method, url)]
        if isinstance(entry, list):
            entry = entry.pop(0) if len(entry) > 1 else entry[0]
        if isinstance(entry, Exception):
            raise entry
        return entry

    @property
    def calls(self):
        return self.session.request.call_args_list

    @property
    def stages(self):
        """Stage names of every request made so far, in order."""
        return [stage_of(c.args[0], c.args[1]) for c in self.calls]

    def calls_for(self, stage):
        return [c for c in self.calls if stage_of(c.args[0], c.args[1]) == stage]


@pytest.fixture
def epson_settings():
    return EpsonSettings(
        host="api.epsonconnect.com",
        client_id="test-client-id",
        client_secret="test-client-secret",
        device=DEVICE,
        batch_delay_seconds=1.0,
    )


@pytest.fixture
def transport():
    return FakeEpsonTransport()


@pytest.fixture
def logger():
    return logging.getLogger("test")
