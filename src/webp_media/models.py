"""
Attachment records as kept by the metadata store.

An attachment is one logical image: a main file plus the pre-generated
size variants (thumbnail, medium, ...) stored next to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png", "image/gif"})


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SizeVariant:
    """A resized copy of an attachment, stored beside the main file."""
    label: str
    file: str
    width: int | None = None
    height: int | None = None
    mime_type: str | None = None

    @classmethod
    def from_dict(cls, label: str, data: dict[str, Any]) -> "SizeVariant":
        return cls(
            label=label,
            file=str(data.get("file") or ""),
            width=_to_int(data.get("width")),
            height=_to_int(data.get("height")),
            mime_type=data.get("mime_type") or data.get("mime-type"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"file": self.file, "width": self.width, "height": self.height}
        if self.mime_type:
            d["mime_type"] = self.mime_type
        return d


@dataclass(frozen=True)
class AttachmentMetadata:
    """
    Stored metadata for one attachment.

    `file` is relative to the media root (e.g. "2024/05/photo.jpg"); size
    variant files are bare names living in the same directory.
    """
    file: str
    width: int | None = None
    height: int | None = None
    mime_type: str | None = None
    sizes: dict[str, SizeVariant] = field(default_factory=dict)

    @property
    def directory(self) -> str:
        parent = str(PurePosixPath(self.file).parent)
        return "" if parent == "." else parent

    @property
    def basename(self) -> str:
        return PurePosixPath(self.file).name

    def relative_name(self, file: str) -> str:
        """Media-relative name of a file stored beside the main file."""
        return f"{self.directory}/{file}" if self.directory else file

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AttachmentMetadata | None":
        """Build from a stored record, or None when the record is empty."""
        if not data or not data.get("file"):
            return None

        raw_sizes = data.get("sizes") or {}
        sizes: dict[str, SizeVariant] = {}
        if isinstance(raw_sizes, dict):
            for label, item in raw_sizes.items():
                if isinstance(item, dict):
                    sizes[str(label)] = SizeVariant.from_dict(str(label), item)
        elif isinstance(raw_sizes, list):
            for index, item in enumerate(raw_sizes):
                if isinstance(item, dict):
                    label = str(item.get("label") or item.get("name") or index)
                    sizes[label] = SizeVariant.from_dict(label, item)

        return cls(
            file=str(data["file"]),
            width=_to_int(data.get("width")),
            height=_to_int(data.get("height")),
            mime_type=data.get("mime_type") or data.get("mime"),
            sizes=sizes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "width": self.width,
            "height": self.height,
            "mime_type": self.mime_type,
            "sizes": {label: size.to_dict() for label, size in self.sizes.items()},
        }
