INVALID_URL_MESSAGE = "Invalid URL provided"
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class ThumbnailError(Exception):
    """Base class for errors raised while producing a thumbnail locator."""


class InvalidUrl(ThumbnailError):
    """The input could not be turned into an absolute http(s) URL."""

    def __init__(self, raw: str | None, reason: str = ""):
        self.raw = raw
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"invalid URL {raw!r}{detail}")


class ProviderError(ThumbnailError):
    """
    A provider could not supply a viable locator.

    Always recovered by the orchestrator, which moves on to the next provider.
    """

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderTransportFailure(ProviderError):
    """Network error, timeout or upstream 5xx while contacting a provider."""


class ProviderRejected(ProviderError):
    """The provider answered with a 4xx status."""

    def __init__(self, provider: str, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(provider, f"API returned {status}: {body}")
