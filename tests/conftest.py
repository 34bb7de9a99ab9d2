"""
Pytest configuration and shared fixtures.
"""

import threading
from unittest.mock import MagicMock
from urllib.parse import urlparse

import pytest
import requests
from requests.adapters import BaseAdapter

from mlflow_cli.client import TrackingClient
from mlflow_cli.config import ClientConfig

_ENV_VARS = (
    "MLFLOW_TRACKING_URI",
    "MLFLOW_EXPERIMENT_ID",
    "MLFLOW_TIME_RESOLUTION",
    "MLFLOW_TIME_ALIGNMENT",
    "MLFLOW_STEP_MODE",
    "MLFLOW_HTTP_REQUEST_TIMEOUT",
    "MLFLOW_ARTIFACT_UPLOAD_WORKERS",
    "DATABRICKS_HOST",
    "DATABRICKS_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env_for_tests(monkeypatch, tmp_path):
    """Clean environment variables for test isolation.

    Ensures tests never talk to a real tracking server or read the user's
    ~/.databrickscfg by clearing MLFLOW_* and DATABRICKS_* variables and
    pointing DATABRICKS_CONFIG_FILE at a file that does not exist.

    This fixture is applied automatically to all tests (autouse=True).
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABRICKS_CONFIG_FILE", str(tmp_path / "missing.databrickscfg"))


def _make_response(status_code=200, json_data=None, text=""):
    """Build a fake requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.content = b""
        response.json.side_effect = ValueError("No JSON")
    else:
        response.content = b"{...}"
        response.json.return_value = json_data
    return response


@pytest.fixture
def make_response():
    """Factory for fake responses: make_response(status_code, json_data, text)."""
    return _make_response


@pytest.fixture
def mock_session():
    """Session double whose requests succeed with an empty body by default."""
    session = MagicMock()
    session.headers = {}
    session.request.return_value = _make_response()
    session.put.return_value = _make_response()
    return session


@pytest.fixture
def local_config():
    """Configuration for a self-hosted tracking server."""
    return ClientConfig(tracking_uri="http://mlflow.test:5000")


@pytest.fixture
def databricks_config():
    """Configuration for a Databricks workspace with a token."""
    return ClientConfig(tracking_uri="databricks", databricks_host="example.cloud.databricks.com", databricks_token="dapi-secret")


@pytest.fixture
def local_client(local_config, mock_session):
    return TrackingClient(local_config, session=mock_session)


@pytest.fixture
def databricks_client(databricks_config, mock_session):
    return TrackingClient(databricks_config, session=mock_session)


class CapturingAdapter(BaseAdapter):
    """Transport adapter that records prepared requests instead of sending them.

    Responses are 200 with the body registered for the request path in
    ``responses`` (empty by default). Request bodies are read at send time,
    while upload file handles are still open.
    """

    def __init__(self, responses=None):
        super().__init__()
        self.responses = responses or {}
        self.sent = []
        self.bodies = []
        self._lock = threading.Lock()

    def send(self, request, **kwargs):
        body = request.body
        if hasattr(body, "read"):
            body = body.read()
        if isinstance(body, str):
            body = body.encode()
        with self._lock:
            self.sent.append(request)
            self.bodies.append(body or b"")

        response = requests.Response()
        response.status_code = 200
        response._content = self.responses.get(urlparse(request.url).path, b"")
        response.request = request
        response.url = request.url
        return response

    def close(self):
        pass


@pytest.fixture
def capturing_session():
    """Real requests.Session whose transport records prepared requests."""
    session = requests.Session()
    adapter = CapturingAdapter()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session, adapter
