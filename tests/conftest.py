import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from complaint_response_app.api.app import create_app
from complaint_response_app.config import AppConfig
from complaint_response_app.integrations.complaints_api import ComplaintsApiClient

from tests._helpers import API_BASE, IDENTITY_BASE, ME_URL, principal


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("COMPLAINTS_API_BASE", API_BASE)
    monkeypatch.setenv("IDENTITY_BASE_URL", IDENTITY_BASE)
    monkeypatch.delenv("AUDIT_LOG_PATH", raising=False)
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    yield


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    orig_httpx = httpx.Client.request

    def block_httpx(self, method, url, *args, **kwargs):
        u = str(url)
        if (
            u.startswith("http://testserver")
            or u.startswith("https://testserver")
            or u.startswith("http://localhost")
            or u.startswith("https://localhost")
        ):
            return orig_httpx(self, method, url, *args, **kwargs)
        raise RuntimeError("External HTTP blocked")

    monkeypatch.setattr(httpx.Client, "request", block_httpx)
    yield
    monkeypatch.setattr(httpx.Client, "request", orig_httpx)


@pytest.fixture
def mock_http():
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        api_base=API_BASE,
        identity_base=IDENTITY_BASE,
        api_timeout_s=5.0,
        identity_timeout_s=5.0,
        audit_log_path=str(tmp_path / "audit.log"),
    )


@pytest.fixture
def api_client(config):
    return ComplaintsApiClient(config.api_base, timeout_s=config.api_timeout_s)


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def as_admin(mock_http):
    mock_http.get(ME_URL).respond(json=principal())
    return mock_http


@pytest.fixture
def as_user(mock_http):
    mock_http.get(ME_URL).respond(
        json=principal(name="Uma User", roles=("authenticated", "complaintsysuser"), email="uma@contoso.com")
    )
    return mock_http


@pytest.fixture
def as_anonymous(mock_http):
    mock_http.get(ME_URL).respond(status_code=401)
    return mock_http
