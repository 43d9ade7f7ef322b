"""
Responsive image attributes computed from attachment metadata.

Mirrors what a media library's responsive-image table provides: natural
dimensions for a given file, a width-descriptor srcset over same-ratio
variants, and a default `sizes` value.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import quote, unquote, urlsplit

from webp_media.locator import VariantLocator
from webp_media.models import AttachmentMetadata
from webp_media.srcset import SrcsetEntry

# srcset needs at least this many sources to be worth emitting
MIN_SRCSET_ENTRIES = 2


def basename(ref: str) -> str:
    return PurePosixPath(unquote(urlsplit(ref).path)).name


def image_dimensions(src: str, metadata: AttachmentMetadata) -> tuple[int, int] | None:
    """Width and height of the file `src` points at, from the metadata."""
    name = basename(src)
    if name == metadata.basename and metadata.width and metadata.height:
        return metadata.width, metadata.height
    for size in metadata.sizes.values():
        if size.file == name and size.width and size.height:
            return size.width, size.height
    return None


def matches_ratio(width_a: int, height_a: int, width_b: int, height_b: int) -> bool:
    """Same aspect ratio, allowing one pixel of rounding."""
    if width_a >= width_b:
        expected = round(height_a * width_b / width_a)
        return abs(expected - height_b) <= 1
    expected = round(height_b * width_a / width_b)
    return abs(expected - height_a) <= 1


def attachment_srcset(metadata: AttachmentMetadata, locator: VariantLocator) -> list[SrcsetEntry]:
    """Width-descriptor entries for the main file and its same-ratio variants."""
    if not metadata.width or not metadata.height:
        return []

    base = locator.media_url.rstrip("/")
    candidates = [(metadata.file, metadata.width, metadata.height)]
    for size in metadata.sizes.values():
        if size.file and size.width and size.height:
            candidates.append((metadata.relative_name(size.file), size.width, size.height))

    entries: list[SrcsetEntry] = []
    seen_urls: set[str] = set()
    seen_widths: set[int] = set()
    for name, width, height in candidates:
        if not matches_ratio(metadata.width, metadata.height, width, height):
            continue
        url = f"{base}/{quote(name)}"
        if url in seen_urls or width in seen_widths:
            continue
        seen_urls.add(url)
        seen_widths.add(width)
        entries.append(SrcsetEntry.from_width(url, width))

    if len(entries) < MIN_SRCSET_ENTRIES:
        return []
    return sorted(entries, key=lambda entry: entry.width)


def sizes_attribute(width: int | None) -> str:
    if not width:
        return "100vw"
    return f"(max-width: {width}px) 100vw, {width}px"
