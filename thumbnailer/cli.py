"""
Command-line interface for thumbnailer.

    thumbnailer example.com https://python.org --width 800 --height 600

Prints one JSON object per URL and exits with status 1 if any capture failed.
"""

import asyncio
import json
import logging
from pathlib import Path

import aiohttp
import click

from .results import CaptureRequest, CaptureResult
from .service import ThumbnailService
from .settings import DEFAULT_THUMBNAIL_CONFIG, ThumbnailConfig, load_credentials_from_env, load_thumbnail_config

logger = logging.getLogger(__name__)


async def capture_all(requests: list[CaptureRequest], config: ThumbnailConfig) -> list[CaptureResult]:
    """Capture every request concurrently over one shared HTTP session."""
    credentials = load_credentials_from_env()
    logger.info("SCREENSHOTONE_ACCESS_KEY: %s", credentials.masked_access_key)

    async with aiohttp.ClientSession() as session:
        service = ThumbnailService(config=config, credentials=credentials, session=session)
        return await asyncio.gather(*(service.capture_screenshot(r) for r in requests))


@click.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--width", type=click.IntRange(min=1), default=1200, show_default=True, help="Viewport width in pixels.")
@click.option("--height", type=click.IntRange(min=1), default=800, show_default=True, help="Viewport height in pixels.")
@click.option("--format", "image_format", type=click.Choice(["png", "jpg", "webp"]), default="png", show_default=True)
@click.option("--full-page", is_flag=True, help="Capture the whole scrollable page.")
@click.option("--scale", type=click.FloatRange(min=0, min_open=True), default=1.0, show_default=True, help="Device scale factor.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML file overriding the defaults.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(urls, width, height, image_format, full_page, scale, config_path, verbose):
    """Print a thumbnail locator for each URL."""
    config = load_thumbnail_config(config_path) if config_path else DEFAULT_THUMBNAIL_CONFIG

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    requests = [
        CaptureRequest(
            url=url,
            width=width,
            height=height,
            format=image_format,
            full_page=full_page,
            device_scale_factor=scale,
        )
        for url in urls
    ]
    results = asyncio.run(capture_all(requests, config))

    for url, result in zip(urls, results):
        click.echo(json.dumps({"url": url, **result.to_dict()}))

    if not all(r.success for r in results):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
