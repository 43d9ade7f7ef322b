"""Parsing and serialising of `srcset` attribute values."""

from __future__ import annotations

import re
from dataclasses import dataclass

WIDTH_DESCRIPTOR_RE = re.compile(r"^(\d+)w$", re.IGNORECASE)


@dataclass(frozen=True)
class SrcsetEntry:
    url: str
    width: int = 0
    descriptor: str = ""

    @classmethod
    def from_width(cls, url: str, width: int) -> "SrcsetEntry":
        return cls(url=url, width=width, descriptor=f"{width}w")

    def __str__(self) -> str:
        return f"{self.url} {self.descriptor}" if self.descriptor else self.url


def parse_srcset(srcset: str | None) -> list[SrcsetEntry]:
    """
    Split a srcset value into entries sorted by ascending width.

    Empty items are skipped, a missing descriptor is tolerated and the
    first occurrence of a URL wins.
    """
    if not srcset:
        return []

    entries: list[SrcsetEntry] = []
    seen: set[str] = set()
    for item in srcset.split(","):
        parts = item.split()
        if not parts:
            continue
        url = parts[0]
        if url in seen:
            continue
        seen.add(url)

        descriptor = parts[1] if len(parts) > 1 else ""
        match = WIDTH_DESCRIPTOR_RE.match(descriptor)
        width = int(match.group(1)) if match else 0
        entries.append(SrcsetEntry(url=url, width=width, descriptor=descriptor))

    entries.sort(key=lambda entry: entry.width)
    return entries


def serialize_srcset(entries: list[SrcsetEntry]) -> str:
    return ", ".join(str(entry) for entry in sorted(entries, key=lambda entry: entry.width))


def normalize_srcset(srcset: str | None) -> str:
    """Re-serialise a srcset value in ascending-width order."""
    return serialize_srcset(parse_srcset(srcset))
