import logging

import aiohttp

from .errors import INVALID_URL_MESSAGE, InvalidUrl, ProviderError, ThumbnailError
from .providers import ProviderDescriptor, default_providers
from .results import CaptureRequest, CaptureResult
from .settings import DEFAULT_THUMBNAIL_CONFIG, ProviderCredentials, ThumbnailConfig, load_credentials_from_env
from .urls import normalize_url

logger = logging.getLogger(__name__)


class ThumbnailService:
    """
    Provider fallback orchestrator.

    - Normalizes the URL, then tries enabled providers in priority order
    - Provider failures are logged and absorbed, the next provider is tried
    - If every provider failed, the last one's locator is returned as a best effort
    - Only invalid input or an unexpected error yields success=False

    Configuration, credentials and the provider chain are fixed at construction
    and never mutated, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        config: ThumbnailConfig | None = None,
        credentials: ProviderCredentials | None = None,
        session: aiohttp.ClientSession | None = None,
        providers: list[ProviderDescriptor] | None = None,
    ):
        self.config = config or DEFAULT_THUMBNAIL_CONFIG
        self.credentials = credentials if credentials is not None else load_credentials_from_env()

        if providers is None:
            providers = default_providers(self.config, self.credentials, session)
        self.providers = sorted(providers, key=lambda p: p.priority)

    async def capture_screenshot(self, request: CaptureRequest) -> CaptureResult:
        logger.info("Capturing screenshot for: %s", request.url)

        try:
            try:
                url = normalize_url(request.url)
            except InvalidUrl as e:
                logger.warning("Rejecting capture request: %s", e)
                return CaptureResult.failed(INVALID_URL_MESSAGE)

            return CaptureResult.ok(await self._locate(url, request))

        except Exception as e:
            logger.exception("Error capturing screenshot for %s", request.url)
            return CaptureResult.failed(str(e))

    async def refresh_thumbnail(self, website_id: int, url: str) -> CaptureResult:
        # website_id is only used for traceability
        logger.info("Refreshing thumbnail for website %s", website_id)

        return await self.capture_screenshot(CaptureRequest(
            url=url,
            width=1200,
            height=800,
            format="png",
            full_page=False,
            device_scale_factor=1,
        ))

    async def _locate(self, url: str, request: CaptureRequest) -> str:
        enabled = [p for p in self.providers if p.is_enabled]
        if not enabled:
            raise ThumbnailError("No thumbnail provider is enabled")

        errors: list[ProviderError] = []
        for provider in enabled:
            try:
                locator = await provider.attempt(url, request)
            except ProviderError as e:
                logger.warning("%s failed, using fallback: %s", provider.name, e)
                errors.append(e)
                continue

            logger.info("Thumbnail for %s provided by %s", url, provider.name)
            return locator

        # Degraded: nobody confirmed viability, hand out the last resort anyway
        last = enabled[-1]
        logger.warning(
            "All %d providers failed for %s (%s), returning best-effort %s locator",
            len(errors), url, "; ".join(map(str, errors)), last.name,
        )
        return last.build_locator(url, request)
