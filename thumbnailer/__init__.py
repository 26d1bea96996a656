from .errors import InvalidUrl, ProviderError, ProviderRejected, ProviderTransportFailure
from .results import CaptureRequest, CaptureResult
from .service import ThumbnailService
from .urls import normalize_url

__all__ = [
    "CaptureRequest",
    "CaptureResult",
    "InvalidUrl",
    "ProviderError",
    "ProviderRejected",
    "ProviderTransportFailure",
    "ThumbnailService",
    "normalize_url",
]
