"""
Mapping between image references and their WebP counterparts on disk.

A WebP file always sits next to its source: same directory, same base
name, `.webp` extension.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)

RASTER_EXT_RE = re.compile(r"\.(jpe?g|png|gif)$", re.IGNORECASE)


def webp_reference(ref: str) -> str:
    """Swap a trailing raster extension for `.webp`; other references are returned as-is."""
    return RASTER_EXT_RE.sub(".webp", ref, count=1)


def webp_path(path: Path) -> Path:
    """Location of the WebP counterpart of a file on disk."""
    return path.with_name(f"{path.stem}.webp")


@dataclass(frozen=True)
class WebpCandidate:
    original: str
    webp: str
    exists: bool = False
    larger: bool = False

    @property
    def usable(self) -> bool:
        """A WebP file exists and does not grow the delivered size."""
        return self.exists and not self.larger and self.webp != self.original


class VariantLocator:
    """Resolves media URLs and paths against the media root."""

    def __init__(self, media_root: Path, media_url: str = "/uploads"):
        self.media_root = Path(media_root)
        self.media_url = media_url

    def to_path(self, ref: str | None) -> Path | None:
        """
        Filesystem path for a reference.

        Media URLs and relative references resolve under the media root,
        absolute paths pass through, URLs on other hosts yield None.
        """
        if not ref:
            return None
        ref = ref.strip()

        prefix = self.media_url.rstrip("/")
        if prefix and ref.startswith(prefix + "/"):
            rest = urlsplit(ref[len(prefix) + 1:]).path
            return self.media_root / unquote(rest)

        parts = urlsplit(ref)
        if parts.scheme == "file":
            return Path(unquote(parts.path))
        if parts.scheme or parts.netloc:
            return None

        path = Path(unquote(parts.path))
        if path.is_absolute():
            return path
        return self.media_root / path

    def to_url(self, path: Path | str) -> str | None:
        """Media URL for a file under the media root, or None outside it."""
        try:
            rel = Path(path).resolve().relative_to(self.media_root.resolve())
        except ValueError:
            return None
        return f"{self.media_url.rstrip('/')}/{rel.as_posix()}"

    def relative_name(self, ref: str | None) -> str | None:
        """Media-relative name ("2024/05/a.jpg") for a URL or path."""
        path = self.to_path(ref)
        if path is None:
            return None
        try:
            return path.resolve().relative_to(self.media_root.resolve()).as_posix()
        except ValueError:
            return None

    def exists(self, ref: str | None) -> bool:
        path = self.to_path(ref)
        return path is not None and path.is_file()

    def size(self, ref: str | None) -> int | None:
        path = self.to_path(ref)
        if path is None:
            return None
        try:
            return path.stat().st_size if path.is_file() else None
        except OSError as e:
            logger.debug("Cannot stat %s: %s", path, e)
            return None

    def is_larger(self, ref: str, webp: str) -> bool:
        """True when the WebP file is bigger than the original; False if either is missing."""
        original_size = self.size(ref)
        webp_size = self.size(webp)
        if original_size is None or webp_size is None:
            return False
        return webp_size > original_size

    def candidate(self, ref: str) -> WebpCandidate:
        webp = webp_reference(ref)
        if webp == ref:
            return WebpCandidate(original=ref, webp=webp)
        exists = self.exists(webp)
        return WebpCandidate(
            original=ref,
            webp=webp,
            exists=exists,
            larger=exists and self.is_larger(ref, webp),
        )
