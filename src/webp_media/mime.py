"""Content-based mime type detection."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

UNKNOWN_MIME = "application/octet-stream"


def sniff_mime_type(path: Path) -> str:
    """Mime type of an image file judged from its content, not its name."""
    try:
        with Image.open(path) as img:
            return Image.MIME.get(img.format or "", UNKNOWN_MIME)
    except (UnidentifiedImageError, OSError) as e:
        logger.debug("Cannot identify %s: %s", path, e)
        return UNKNOWN_MIME
