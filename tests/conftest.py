"""Shared fixtures."""
import json
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import HttpResponseError

from bicep_deploy.actions import core


@pytest.fixture(autouse=True)
def _reset_action_state(monkeypatch):
    """Start every test with a passing run and stdout-based outputs."""
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("RUNNER_DEBUG", raising=False)
    core.reset()
    yield
    core.reset()


def make_http_error(body=None, correlation_id="corr-123", status_code=400):
    """Build an HttpResponseError the way the SDK raises it for a failed request."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = "Bad Request"
    response.headers = {"x-ms-correlation-request-id": correlation_id}
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    response.text.return_value = body
    return HttpResponseError(message="Request failed", response=response)


@pytest.fixture
def http_error():
    return make_http_error
