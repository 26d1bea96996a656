import pytest

from thumbnailer.results import CaptureRequest
from thumbnailer.settings import ProviderCredentials, ThumbnailConfig


class FakeResponse:
    """Just enough of aiohttp.ClientResponse for the pre-flight check."""

    def __init__(self, status: int, body: bytes = b""):
        self.status = status
        self._body = body

    async def text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        return self._body.decode(encoding, errors)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records GET calls; answers with a fixed status or raises `exc`."""

    def __init__(self, status: int = 200, body: bytes = b"", exc: Exception | None = None):
        self.status = status
        self.body = body
        self.exc = exc
        self.calls: list[tuple[str, dict]] = []

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status, self.body)


@pytest.fixture
def config() -> ThumbnailConfig:
    return ThumbnailConfig()


@pytest.fixture
def no_credentials() -> ProviderCredentials:
    return ProviderCredentials()


@pytest.fixture
def credentials() -> ProviderCredentials:
    return ProviderCredentials(access_key="test-access-key", secret_key="test-secret")


@pytest.fixture
def request_1200x800() -> CaptureRequest:
    return CaptureRequest(url="https://example.com")


@pytest.fixture
def session_factory():
    return FakeSession
