"""Local asset paths: where uploads are staged and thumbnails are served from."""

import logging

from pathlib import Path

from tubely.config import Settings


logger = logging.getLogger(__name__)


def ensure_assets_dir(settings: Settings) -> Path:
    """Create the assets root if it does not exist and return it."""
    root = Path(settings.assets_root)
    if not root.exists():
        root.mkdir(parents=True, exist_ok=True)
        logger.info("Created assets directory", extra={"assets_root": str(root)})
    return root


def get_asset_disk_path(settings: Settings, filename: str) -> Path:
    """
    Map a generated filename to an absolute path under the assets root.

    Raises:
        ValueError: If ``filename`` contains a path separator.
    """
    if not filename or Path(filename).name != filename:
        raise ValueError(f"Asset filename must be a bare name, got {filename!r}")
    return Path(settings.assets_root).resolve() / filename


def get_asset_url(settings: Settings, filename: str) -> str:
    """Public URL of a file served from the ``/assets`` mount."""
    return f"{settings.platform_url}/assets/{filename}"
