import asyncio
import logging

import pytest

from thumbnailer.errors import ProviderRejected, ProviderTransportFailure
from thumbnailer.providers import ProviderDescriptor
from thumbnailer.results import CaptureRequest, CaptureResult
from thumbnailer.service import ThumbnailService

EXAMPLE_WEBTHUMBNAIL = "https://webthumbnail.org/api/?width=1200&height=800&screen=1280&url=https%3A%2F%2Fexample.com%2F"


def make_provider(name, priority, error=None):
    """Helper: provider whose locator is 'name:url', optionally failing verification."""

    async def verify(locator):
        raise error

    return ProviderDescriptor(
        name=name,
        priority=priority,
        build_locator=lambda url, request: f"{name}:{url}",
        verify=verify if error is not None else None,
    )


@pytest.mark.asyncio
async def test_no_credentials_uses_secondary_without_network(config, no_credentials, session_factory):
    session = session_factory()
    service = ThumbnailService(config=config, credentials=no_credentials, session=session)

    result = await service.capture_screenshot(CaptureRequest(url="https://example.com", width=1200, height=800, format="png", full_page=False))

    assert result == CaptureResult.ok(EXAMPLE_WEBTHUMBNAIL)
    assert result.to_dict() == {"success": True, "thumbnailUrl": EXAMPLE_WEBTHUMBNAIL}
    assert session.calls == []


@pytest.mark.asyncio
async def test_empty_url_is_invalid(config, credentials, session_factory):
    session = session_factory()
    service = ThumbnailService(config=config, credentials=credentials, session=session)

    result = await service.capture_screenshot(CaptureRequest(url=""))

    assert result.to_dict() == {"success": False, "error": "Invalid URL provided"}
    assert session.calls == []


@pytest.mark.asyncio
async def test_invalid_url_contacts_no_provider(config):
    attempted = []

    def build(url, request):
        attempted.append(url)
        return url

    service = ThumbnailService(
        config=config,
        providers=[ProviderDescriptor(name="spy", priority=0, build_locator=build)],
    )
    result = await service.capture_screenshot(CaptureRequest(url="   "))

    assert not result.success
    assert result.error == "Invalid URL provided"
    assert attempted == []


@pytest.mark.asyncio
async def test_verified_primary_is_returned(config, credentials, session_factory):
    session = session_factory(status=200)
    service = ThumbnailService(config=config, credentials=credentials, session=session)

    result = await service.capture_screenshot(CaptureRequest(url="example.com", width=640, height=480, format="jpg"))

    assert result.success
    assert result.error is None
    assert result.thumbnail_url == (
        "https://api.screenshotone.com/take?access_key=test-access-key"
        "&url=https%3A%2F%2Fexample.com%2F&viewport_width=640&viewport_height=480"
        "&device_scale_factor=1&format=jpg&full_page=false&block_ads=true"
        "&block_cookie_banners=true&cache=true&cache_ttl=86400"
    )
    assert [url for url, _ in session.calls] == [result.thumbnail_url]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
async def test_failed_primary_falls_back_to_secondary(config, credentials, session_factory, status, caplog):
    session = session_factory(status=status, body=b"quota exceeded")
    service = ThumbnailService(config=config, credentials=credentials, session=session)

    with caplog.at_level(logging.WARNING, logger="thumbnailer.service"):
        result = await service.capture_screenshot(CaptureRequest(url="https://example.com"))

    assert result == CaptureResult.ok(EXAMPLE_WEBTHUMBNAIL)
    assert len(session.calls) == 1
    assert "screenshotone failed, using fallback" in caplog.text


@pytest.mark.asyncio
async def test_primary_timeout_falls_back(config, credentials, session_factory):
    session = session_factory(exc=asyncio.TimeoutError())
    service = ThumbnailService(config=config, credentials=credentials, session=session)

    result = await service.capture_screenshot(CaptureRequest(url="https://example.com"))

    assert result.thumbnail_url == EXAMPLE_WEBTHUMBNAIL


@pytest.mark.asyncio
async def test_identical_calls_give_identical_locators(config, credentials, session_factory):
    service = ThumbnailService(config=config, credentials=credentials, session=session_factory(status=200))
    request = CaptureRequest(url="example.com/page?x=1", device_scale_factor=2)

    first = await service.capture_screenshot(request)
    second = await service.capture_screenshot(request)

    assert first.thumbnail_url == second.thumbnail_url


@pytest.mark.asyncio
async def test_providers_run_in_priority_order(config):
    service = ThumbnailService(config=config, providers=[
        make_provider("late", 5),
        make_provider("early", 1, error=ProviderRejected("early", 403, "nope")),
        make_provider("middle", 3),
    ])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result.thumbnail_url == "middle:https://example.com/"


@pytest.mark.asyncio
async def test_fallible_secondary_reaches_last_resort(config):
    service = ThumbnailService(config=config, providers=[
        make_provider("primary", 0, error=ProviderTransportFailure("primary", "down")),
        make_provider("secondary", 1, error=ProviderRejected("secondary", 404, "")),
        make_provider("legacy", 2),
    ])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result.thumbnail_url == "legacy:https://example.com/"


@pytest.mark.asyncio
async def test_all_failures_return_best_effort_last_resort(config, caplog):
    service = ThumbnailService(config=config, providers=[
        make_provider("primary", 0, error=ProviderTransportFailure("primary", "down")),
        make_provider("legacy", 1, error=ProviderRejected("legacy", 410, "gone")),
    ])

    with caplog.at_level(logging.WARNING, logger="thumbnailer.service"):
        result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result == CaptureResult.ok("legacy:https://example.com/")
    assert "returning best-effort legacy locator" in caplog.text


@pytest.mark.asyncio
async def test_disabled_providers_are_skipped(config):
    attempted = []

    def build(url, request):
        attempted.append(url)
        return "keyed"

    service = ThumbnailService(config=config, providers=[
        ProviderDescriptor(name="keyed", priority=0, build_locator=build, requires_credential=True, credential=None),
        make_provider("keyless", 1),
    ])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result.thumbnail_url == "keyless:https://example.com/"
    assert attempted == []


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failed_result(config):
    def broken(url, request):
        raise RuntimeError("malformed endpoint configuration")

    service = ThumbnailService(config=config, providers=[
        ProviderDescriptor(name="broken", priority=0, build_locator=broken),
    ])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result.to_dict() == {"success": False, "error": "malformed endpoint configuration"}


@pytest.mark.asyncio
async def test_unexpected_error_without_message_uses_generic_text(config):
    def broken(url, request):
        raise RuntimeError()

    service = ThumbnailService(config=config, providers=[
        ProviderDescriptor(name="broken", priority=0, build_locator=broken),
    ])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert result.error == "Unknown error occurred"


@pytest.mark.asyncio
async def test_no_enabled_provider_is_a_failure(config):
    service = ThumbnailService(config=config, providers=[])

    result = await service.capture_screenshot(CaptureRequest(url="example.com"))

    assert not result.success
    assert result.thumbnail_url is None


@pytest.mark.asyncio
async def test_refresh_uses_fixed_options(config, no_credentials, session_factory):
    session = session_factory()
    service = ThumbnailService(config=config, credentials=no_credentials, session=session)

    result = await service.refresh_thumbnail(42, "example.com")

    assert result == CaptureResult.ok(EXAMPLE_WEBTHUMBNAIL)


@pytest.mark.asyncio
async def test_refresh_sends_fixed_options_to_primary(config, credentials, session_factory):
    session = session_factory(status=200)
    service = ThumbnailService(config=config, credentials=credentials, session=session)

    result = await service.refresh_thumbnail(7, "https://example.com")

    assert "viewport_width=1200&viewport_height=800&device_scale_factor=1&format=png&full_page=false" in result.thumbnail_url


@pytest.mark.asyncio
async def test_credentials_default_to_environment(config, monkeypatch):
    monkeypatch.delenv("SCREENSHOTONE_ACCESS_KEY", raising=False)

    service = ThumbnailService(config=config)

    assert not service.credentials.has_access_key
    assert not service.providers[0].is_enabled
