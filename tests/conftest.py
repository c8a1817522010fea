import httpx
import pytest
from fastapi.testclient import TestClient

from services.pitchprint_relay.app import create_app
from services.pitchprint_relay.config import RelayConfig

UPLOAD_URL = "https://api.pitchprint.io/runtime/file_upload"


@pytest.fixture
def config():
    return RelayConfig(api_key="pk_test", secret_key="sk_test")


@pytest.fixture
def upstream():
    """Stub PitchPrint: records every outbound request, answers with `upstream.reply`."""

    class Upstream:
        def __init__(self):
            self.requests = []
            self.reply = httpx.Response(200, json={"ok": True})

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if isinstance(self.reply, Exception):
                raise self.reply
            return self.reply

    return Upstream()


@pytest.fixture
def client(config, upstream):
    app = create_app(config, transport=httpx.MockTransport(upstream))
    with TestClient(app) as c:
        yield c
