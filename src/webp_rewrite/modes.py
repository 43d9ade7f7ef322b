"""
The two ways an <img> element is pointed at WebP files.

Inline mode rewrites `src`/`srcset` in place. Fallback mode leaves the
element alone and wraps it in a <picture> with a WebP <source>.
"""

from __future__ import annotations

import re

from markupsafe import escape

from webp_media.locator import VariantLocator, webp_reference
from webp_media.models import AttachmentMetadata
from webp_media.srcset import SrcsetEntry, parse_srcset, serialize_srcset

from .responsive import attachment_srcset, image_dimensions, sizes_attribute

SRC_ATTR_RE = re.compile(r"""(?<![\w-])src\s*=\s*(["'])([^"']+)\1""", re.IGNORECASE)
SRCSET_ATTR_RE = re.compile(r"""(?<![\w-])srcset\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)
TAG_END_RE = re.compile(r"\s*(/?)\s*>$")


def has_attribute(tag: str, name: str) -> bool:
    return re.search(rf"(?<![\w-]){re.escape(name)}\s*=", tag, re.IGNORECASE) is not None


def add_attributes(tag: str, attributes: dict[str, str]) -> str:
    """Append the attributes the tag does not already carry."""
    missing = {name: value for name, value in attributes.items() if not has_attribute(tag, name)}
    if not missing:
        return tag

    match = TAG_END_RE.search(tag)
    if match is None:
        return tag
    extra = "".join(f' {name}="{escape(value)}"' for name, value in missing.items())
    closing = " />" if match.group(1) else ">"
    return tag[:match.start()] + extra + closing


def webp_entries(entries: list[SrcsetEntry], locator: VariantLocator) -> list[SrcsetEntry]:
    """Swap each entry to its WebP file where one exists on disk."""
    swapped = []
    for entry in entries:
        webp = webp_reference(entry.url)
        if webp != entry.url and locator.exists(webp):
            entry = SrcsetEntry(url=webp, width=entry.width, descriptor=entry.descriptor)
        swapped.append(entry)
    return swapped


def responsive_attributes(src: str, metadata: AttachmentMetadata, locator: VariantLocator) -> dict[str, str]:
    """width/height, plus srcset/sizes when they can be computed."""
    dimensions = image_dimensions(src, metadata)
    if dimensions is None:
        return {}

    width, height = dimensions
    attributes = {"width": str(width), "height": str(height)}

    entries = attachment_srcset(metadata, locator)
    if entries:
        attributes["srcset"] = serialize_srcset(entries)
        attributes["sizes"] = sizes_attribute(width)
    return attributes


def render_inline(tag: str, src: str, metadata: AttachmentMetadata, locator: VariantLocator) -> str:
    """Inject responsive attributes, then point src and srcset at WebP files."""
    tag = add_attributes(tag, responsive_attributes(src, metadata, locator))

    def swap_src(match: re.Match[str]) -> str:
        quote, value = match.group(1), match.group(2)
        webp = webp_reference(value)
        if webp != value and locator.exists(webp):
            return f"src={quote}{webp}{quote}"
        return match.group(0)

    def swap_srcset(match: re.Match[str]) -> str:
        quote, value = match.group(1), match.group(2)
        entries = webp_entries(parse_srcset(value), locator)
        return f"srcset={quote}{serialize_srcset(entries)}{quote}"

    tag = SRC_ATTR_RE.sub(swap_src, tag, count=1)
    return SRCSET_ATTR_RE.sub(swap_srcset, tag, count=1)


def render_picture(tag: str, src: str, metadata: AttachmentMetadata, locator: VariantLocator) -> str:
    """Wrap the untouched <img> in a <picture> offering the WebP files first."""
    webp = webp_reference(src)
    if webp == src or not locator.exists(webp):
        return tag

    dimensions = image_dimensions(src, metadata)
    sizes = sizes_attribute(dimensions[0] if dimensions else None)

    entries = attachment_srcset(metadata, locator)
    srcset = serialize_srcset(webp_entries(entries, locator)) if entries else webp

    return (
        "<picture>"
        f'<source type="image/webp" srcset="{escape(srcset)}" sizes="{escape(sizes)}">'
        f"{tag}"
        "</picture>"
    )
