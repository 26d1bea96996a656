from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import UNKNOWN_ERROR_MESSAGE

ImageFormat = Literal["png", "jpg", "webp"]


class CaptureRequest(BaseModel):
    """
    What the caller wants a thumbnail of, and how it should be rendered.

    Fields:
        url                 : Raw website URL, the scheme may be missing.
        width / height      : Viewport size in pixels.
        format              : Output image format.
        full_page           : Capture the whole scrollable page, not just the viewport.
        device_scale_factor : Pixel density multiplier (2 for "retina").
    """
    model_config = ConfigDict(frozen=True)

    url: str
    width: int = Field(default=1200, gt=0)
    height: int = Field(default=800, gt=0)
    format: ImageFormat = "png"
    full_page: bool = False
    device_scale_factor: float = Field(default=1, gt=0)


@dataclass(frozen=True)
class CaptureResult:
    """
    Uniform answer returned to the caller.

    Use `ok()` / `failed()` rather than the constructor so that exactly one of
    `thumbnail_url` and `error` is set.
    """
    success: bool
    thumbnail_url: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, thumbnail_url: str) -> "CaptureResult":
        return cls(success=True, thumbnail_url=thumbnail_url)

    @classmethod
    def failed(cls, error: str | None) -> "CaptureResult":
        return cls(success=False, error=error or UNKNOWN_ERROR_MESSAGE)

    def to_dict(self) -> dict:
        """JSON shape expected by HTTP handlers (camelCase keys, absent fields omitted)."""
        if self.success:
            return {"success": True, "thumbnailUrl": self.thumbnail_url}
        return {"success": False, "error": self.error}
