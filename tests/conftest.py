import os
import sys

import pytest

# Ensure project root (parent of tests) is on sys.path before importing app
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from asklepios import create_app  # noqa: E402
from asklepios.atestados.state import get_store  # noqa: E402


class FakeResponse:
    def __init__(self, payload=None, status_code=200, json_error=None):
        self._payload = payload
        self.status_code = status_code
        self._json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests

            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._json_error:
            raise self._json_error
        return self._payload


class FakeSession:
    """Substitui requests.Session; registra chamadas e devolve respostas fixas."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


@pytest.fixture()
def app():
    class TestConfig:
        TESTING = True
        SECRET_KEY = "test"
        WTF_CSRF_ENABLED = False
        CID_API_URL = "https://cid.example.test/search"
        CID_TIMEOUT = 1.0
        LOCAL_EMISSAO = "Goiânia/GO"

    flask_app = create_app(TestConfig)
    yield flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def page_state(client):
    """Estado da página ligado ao cookie do client de teste."""

    def _get():
        with client.session_transaction() as sess:
            token = sess["atestado_token"]
        return get_store().get(token)

    return _get
