import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]

ACCESS_KEY_ENV = "SCREENSHOTONE_ACCESS_KEY"
SECRET_KEY_ENV = "SCREENSHOTONE_SECRET_KEY"
CONFIG_PATH_ENV = "THUMBNAILER_CONFIG"


class ProviderCredentials(BaseModel):
    access_key: str | None = None
    secret_key: str | None = None

    @property
    def has_access_key(self) -> bool:
        return bool(self.access_key)

    @property
    def masked_access_key(self) -> str:
        """
        Access key safe for logs: "****" plus the last four characters,
        or "missing" when no key is configured.
        """
        if not self.access_key:
            return "missing"
        return "****" + self.access_key[-4:]


def load_credentials_from_env(environ: Mapping[str, str] | None = None) -> ProviderCredentials:
    """
    Read the primary provider credentials from the environment.

    Empty values count as absent, so an exported-but-blank key disables the
    credentialed provider instead of making every request fail with a 4xx.
    """
    env = os.environ if environ is None else environ
    return ProviderCredentials(
        access_key=env.get(ACCESS_KEY_ENV) or None,
        secret_key=env.get(SECRET_KEY_ENV) or None,
    )


@dataclass
class ThumbnailConfig:
    """
    Central configuration for the thumbnail providers.

    Values can be overridden via thumbnail_config.yaml at the project root
    (or the file named by $THUMBNAILER_CONFIG).
    """

    # Primary provider (credentialed, verified before use)
    screenshotone_endpoint: str = "https://api.screenshotone.com/take"
    preflight_timeout_s: float = 15.0
    cache_ttl_s: int = 24 * 3600

    # Secondary provider (keyless)
    webthumbnail_endpoint: str = "https://webthumbnail.org/api/"
    webthumbnail_screen_width: int = 1280

    # Last resort (legacy, keyless)
    url2png_endpoint: str = "https://api.url2png.com/v6/P4DE4C-55D9C7/png/"

    # Logging
    log_level: str = "INFO"


def load_thumbnail_config(path: str | Path | None = None) -> ThumbnailConfig:
    """
    Load ThumbnailConfig from YAML if present; otherwise use defaults.

    By default, looks for $THUMBNAILER_CONFIG, then `thumbnail_config.yaml`
    at the project root.
    """

    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or PROJECT_ROOT / "thumbnail_config.yaml"

    path = Path(path)

    if not path.exists():
        logger.debug("YAML not found at %s, using defaults", path)
        return ThumbnailConfig()

    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}

    if not isinstance(data, dict):
        logger.warning("Expected mapping in %s, got %s, using defaults", path, type(data).__name__)
        return ThumbnailConfig()

    allowed_keys = {f.name for f in fields(ThumbnailConfig)}
    unknown = sorted(set(data) - allowed_keys)
    if unknown:
        logger.warning("Ignoring unknown keys in %s: %s", path, ", ".join(map(str, unknown)))

    filtered = {k: v for k, v in data.items() if k in allowed_keys}
    return ThumbnailConfig(**filtered)


DEFAULT_THUMBNAIL_CONFIG = load_thumbnail_config()
