import asyncio
import logging
import time

import aiohttp

from .errors import ProviderRejected, ProviderTransportFailure
from .policy import PreflightOutcome, classify_preflight
from .settings import ThumbnailConfig

logger = logging.getLogger(__name__)


class ScreenshotOneVerifier:
    """
    Pre-flight check for the credentialed provider, built on aiohttp.

    - One GET against the fully built locator, bounded by config.preflight_timeout_s
    - Uses the caller's session when given, otherwise a short-lived one
    - Status interpretation lives in policy.classify_preflight
    - Raises ProviderTransportFailure / ProviderRejected, returns None when viable
    """
    name = "screenshotone"

    def __init__(self, config: ThumbnailConfig, session: aiohttp.ClientSession | None = None):
        self.config = config
        self.session = session

    async def __call__(self, locator: str) -> None:
        t0 = time.perf_counter()
        timeout = aiohttp.ClientTimeout(total=self.config.preflight_timeout_s)

        try:
            if self.session is not None:
                await self._check(self.session, locator, timeout)
            else:
                async with aiohttp.ClientSession() as session:
                    await self._check(session, locator, timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderTransportFailure(self.name, f"{type(e).__name__}: {e}") from e
        finally:
            logger.debug("%s pre-flight took %.3fs", self.name, time.perf_counter() - t0)

    async def _check(self, session: aiohttp.ClientSession, locator: str, timeout: aiohttp.ClientTimeout) -> None:
        async with session.get(locator, timeout=timeout, allow_redirects=True) as resp:
            outcome = classify_preflight(resp.status)

            if outcome is PreflightOutcome.TRANSPORT_FAILURE:
                raise ProviderTransportFailure(self.name, f"upstream returned {resp.status}")

            if outcome is PreflightOutcome.REJECTED:
                body = await resp.text(errors="replace")
                raise ProviderRejected(self.name, resp.status, body)
