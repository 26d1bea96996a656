"""
Thumbnail providers and their locator builders.

Default chain, best first:
1. ScreenshotOne - credentialed rendering API, verified with a pre-flight GET
2. WebThumbnail  - keyless, accepted without verification
3. URL2PNG       - legacy keyless endpoint, last resort

Locator builders are pure functions of (normalized url, request, config),
so the same input always yields the same locator.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from urllib.parse import quote, quote_plus, urlencode

import aiohttp

from .errors import ProviderError
from .preflight import ScreenshotOneVerifier
from .results import CaptureRequest
from .settings import ProviderCredentials, ThumbnailConfig

LocatorBuilder = Callable[[str, CaptureRequest], str]
Verifier = Callable[[str], Awaitable[None]]


def encode_component(value: str) -> str:
    """Percent-encode a query value, leaving only A-Za-z0-9 and -_.!~*'() as is."""
    return quote(value, safe="!~*'()")


def form_quote(value: str, safe: str = "", encoding: str | None = None, errors: str | None = None) -> str:
    """Form-encode a query value, leaving only A-Za-z0-9 and *-._ as is (spaces become +)."""
    return quote_plus(value, safe="*", encoding=encoding, errors=errors).replace("~", "%7E")


def _format_number(value: float) -> str:
    # 1.0 -> "1", 1.5 -> "1.5"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _format_flag(value: bool) -> str:
    return "true" if value else "false"


def screenshotone_url(url: str, request: CaptureRequest, access_key: str, config: ThumbnailConfig) -> str:
    params = {
        "access_key": access_key,
        "url": url,
        "viewport_width": str(request.width),
        "viewport_height": str(request.height),
        "device_scale_factor": _format_number(request.device_scale_factor),
        "format": request.format,
        "full_page": _format_flag(request.full_page),
        "block_ads": "true",
        "block_cookie_banners": "true",
        "cache": "true",
        "cache_ttl": str(config.cache_ttl_s),
    }
    return f"{config.screenshotone_endpoint}?{urlencode(params, quote_via=form_quote)}"


def webthumbnail_url(url: str, request: CaptureRequest, config: ThumbnailConfig) -> str:
    return (
        f"{config.webthumbnail_endpoint}?width={request.width}&height={request.height}"
        f"&screen={config.webthumbnail_screen_width}&url={encode_component(url)}"
    )


def url2png_url(url: str, request: CaptureRequest, config: ThumbnailConfig) -> str:
    return (
        f"{config.url2png_endpoint}?thumbnail_max_width={request.width}"
        f"&thumbnail_max_height={request.height}&url={encode_component(url)}"
    )


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    One entry of the fallback chain.

    Fields:
        name                : Provider name used in logs.
        priority            : Lower runs first.
        build_locator       : Pure (normalized_url, request) -> locator.
        requires_credential : Skip the provider when `credential` is empty.
        credential          : The configured credential, if any.
        verify              : Optional async pre-flight check; raises ProviderError
                              when the locator is not viable. Providers without
                              one are accepted as soon as the locator is built.
    """
    name: str
    priority: int
    build_locator: LocatorBuilder
    requires_credential: bool = False
    credential: str | None = None
    verify: Verifier | None = None

    @property
    def is_enabled(self) -> bool:
        return not self.requires_credential or bool(self.credential)

    async def attempt(self, url: str, request: CaptureRequest) -> str:
        if not self.is_enabled:
            raise ProviderError(self.name, "credential not configured")

        locator = self.build_locator(url, request)
        if self.verify is not None:
            await self.verify(locator)
        return locator


def default_providers(
    config: ThumbnailConfig,
    credentials: ProviderCredentials,
    session: aiohttp.ClientSession | None = None,
) -> list[ProviderDescriptor]:
    return [
        ProviderDescriptor(
            name="screenshotone",
            priority=0,
            build_locator=partial(screenshotone_url, access_key=credentials.access_key or "", config=config),
            requires_credential=True,
            credential=credentials.access_key,
            verify=ScreenshotOneVerifier(config, session),
        ),
        ProviderDescriptor(
            name="webthumbnail",
            priority=1,
            build_locator=partial(webthumbnail_url, config=config),
        ),
        ProviderDescriptor(
            name="url2png",
            priority=2,
            build_locator=partial(url2png_url, config=config),
        ),
    ]
