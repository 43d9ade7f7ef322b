"""
Attachment metadata stores.

The pipelines and the rewrite engine only need the read-only lookups of
`AttachmentStore`. `ManifestStore` keeps the records in a JSON manifest
next to the media files.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path, PurePosixPath
from typing import Iterable, Protocol
from urllib.parse import unquote, urlsplit

from .errors import ValidationError
from .locator import VariantLocator
from .mime import sniff_mime_type
from .models import AttachmentMetadata

logger = logging.getLogger(__name__)

# distinct URLs remembered by id_from_url, hits and misses alike
URL_CACHE_SIZE = 1024

_MISS = object()


class AttachmentStore(Protocol):
    def file_path(self, attachment_id: int) -> Path | None: ...

    def metadata(self, attachment_id: int) -> AttachmentMetadata | None: ...

    def mime_type(self, attachment_id: int) -> str: ...

    def id_from_url(self, url: str) -> int | None: ...

    def ids(self, mime_types: Iterable[str] | None = None) -> list[int]: ...


class ManifestStore:
    """
    Attachment records loaded from a JSON manifest.

    The manifest maps attachment ids to records shaped like
    `{"file": "2024/05/photo.jpg", "width": 800, "height": 600,
    "mime_type": "image/jpeg", "sizes": {"thumbnail": {...}}}`.
    """

    def __init__(
        self,
        locator: VariantLocator,
        records: dict[int, AttachmentMetadata] | None = None,
        cache_size: int = URL_CACHE_SIZE,
    ):
        self.locator = locator
        self._records: dict[int, AttachmentMetadata] = dict(records or {})
        self.cache_size = max(1, cache_size)
        self._url_cache: dict[str, int | None] = {}
        self._cache_lock = threading.Lock()

    @classmethod
    def load(cls, manifest: Path, locator: VariantLocator) -> ManifestStore:
        """Read a manifest file; a missing manifest gives an empty store."""
        if not manifest.exists():
            logger.warning("Manifest not found, starting empty: %s", manifest)
            return cls(locator)

        try:
            raw = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ValidationError(f"Cannot read manifest {manifest}: {e}") from e

        if not isinstance(raw, dict):
            raise ValidationError(f"Manifest must be a JSON object: {manifest}")

        records: dict[int, AttachmentMetadata] = {}
        for key, data in raw.items():
            try:
                attachment_id = int(key)
            except ValueError:
                logger.warning("Skipping non-numeric attachment id %r", key)
                continue
            metadata = AttachmentMetadata.from_dict(data if isinstance(data, dict) else None)
            if metadata is None:
                logger.warning("Skipping attachment %d without a file", attachment_id)
                continue
            records[attachment_id] = metadata

        logger.info("Loaded %d attachments from %s", len(records), manifest)
        return cls(locator, records)

    def add(self, attachment_id: int, metadata: AttachmentMetadata) -> None:
        self._records[attachment_id] = metadata
        self.clear_cache()

    def file_path(self, attachment_id: int) -> Path | None:
        metadata = self._records.get(attachment_id)
        if metadata is None:
            return None
        return self.locator.media_root / metadata.file

    def metadata(self, attachment_id: int) -> AttachmentMetadata | None:
        return self._records.get(attachment_id)

    def mime_type(self, attachment_id: int) -> str:
        metadata = self._records.get(attachment_id)
        if metadata is None:
            return ""
        if metadata.mime_type:
            return metadata.mime_type
        path = self.file_path(attachment_id)
        return sniff_mime_type(path) if path is not None and path.exists() else ""

    def ids(self, mime_types: Iterable[str] | None = None) -> list[int]:
        wanted = frozenset(mime_types) if mime_types is not None else None
        return sorted(
            attachment_id for attachment_id in self._records
            if wanted is None or self.mime_type(attachment_id) in wanted
        )

    def id_from_url(self, url: str) -> int | None:
        """
        Owning attachment of a URL.

        Exact match on the main file first, then the size variants: by their
        location under the media root, and failing that by file name alone so
        cropped, thumbnail and CDN URLs resolve too. Results are cached up to
        `cache_size` URLs, oldest dropped first.
        """
        if not url:
            return None
        cached = self._url_cache.get(url, _MISS)
        if cached is not _MISS:
            return cached

        attachment_id = self._find_exact(url)
        if attachment_id is None:
            attachment_id = self._find_by_size_file(url)

        with self._cache_lock:
            if len(self._url_cache) >= self.cache_size:
                # evict the oldest entry (dicts keep insertion order)
                self._url_cache.pop(next(iter(self._url_cache)), None)
            self._url_cache[url] = attachment_id
        return attachment_id

    def clear_cache(self, url: str | None = None) -> None:
        with self._cache_lock:
            if url is None:
                self._url_cache.clear()
            else:
                self._url_cache.pop(url, None)

    def _find_exact(self, url: str) -> int | None:
        name = self.locator.relative_name(url)
        if name is None:
            return None
        for attachment_id, metadata in self._records.items():
            if metadata.file == name:
                return attachment_id
        return None

    def _find_by_size_file(self, url: str) -> int | None:
        name = self.locator.relative_name(url)
        if name is not None:
            for attachment_id, metadata in self._records.items():
                for size in metadata.sizes.values():
                    if size.file and metadata.relative_name(size.file) == name:
                        return attachment_id

        # no match by location, fall back to the file name
        basename = PurePosixPath(unquote(urlsplit(url).path)).name
        if not basename:
            return None
        for attachment_id, metadata in self._records.items():
            for size in metadata.sizes.values():
                if size.file == basename:
                    return attachment_id
        return None


def is_webp_attachment(store: AttachmentStore, locator: VariantLocator, path: Path) -> bool:
    """
    True when the attachment owning `path` is stored as a WebP file.

    Judged from the stored main file, not from `path` itself.
    """
    url = locator.to_url(path)
    if url is None:
        return False
    attachment_id = store.id_from_url(url)
    if not attachment_id or attachment_id <= 0:
        return False
    stored = store.file_path(attachment_id)
    return stored is not None and stored.suffix.lower() == ".webp"
