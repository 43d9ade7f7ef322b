"""
Raster decoding and WebP encoding.

Decoders are picked by file extension. Palette images are expanded to
truecolour before encoding so transparency survives the round trip.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from webp_media.errors import CodecError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DECODERS: dict[str, str] = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
}


class ImageCodec(Protocol):
    def decode(self, path: Path) -> Image.Image: ...

    def encode(self, image: Image.Image, quality: int) -> bytes: ...


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode in ("P", "L", "RGB") and "transparency" in img.info
    )


def normalize(img: Image.Image, fmt: str) -> Image.Image:
    """Truecolour copy of a decoded image, keeping alpha where present."""
    if fmt == "JPEG":
        return img.convert("RGB")
    # PNG and GIF: palette to truecolour, alpha blended into RGBA
    if _has_alpha(img):
        return img.convert("RGBA")
    return img.convert("RGB")


class PillowCodec:
    """Decodes with Pillow and encodes WebP in-process."""

    def decode(self, path: Path) -> Image.Image:
        fmt = DECODERS.get(path.suffix.lower())
        if fmt is None:
            raise UnsupportedFormatError(f"Unsupported file type: {path.name}")

        try:
            with Image.open(path, formats=[fmt]) as img:
                img.load()
                return normalize(img, fmt)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecError(f"Failed to create image resource: {path.name}") from e

    def encode(self, image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        try:
            image.save(buffer, "WEBP", quality=quality)
        except (OSError, ValueError, KeyError) as e:
            raise CodecError(f"WebP encoding failed: {e}") from e

        data = buffer.getvalue()
        if not data:
            raise CodecError("WebP encoder produced no data")
        return data


def make_codec(name: str) -> ImageCodec:
    """Codec for an encoder name from the settings."""
    if name == "cwebp":
        from .cwebp import CwebpCodec
        return CwebpCodec()
    return PillowCodec()


def write_new_file(target: Path, data: bytes) -> None:
    """
    Write `data` to `target`, failing with FileExistsError if it exists.

    The exclusive create makes the exists-check and the write one step; a
    write that fails part-way leaves no file behind.
    """
    try:
        with open(target, "xb") as fh:
            fh.write(data)
    except FileExistsError:
        raise
    except OSError:
        target.unlink(missing_ok=True)
        raise
