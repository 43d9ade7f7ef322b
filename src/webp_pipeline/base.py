"""Fan-out shared by the conversion and cleanup pipelines."""

from __future__ import annotations

import logging
import threading
import traceback
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterator

from webp_media.config import Settings
from webp_media.errors import ValidationError
from webp_media.locator import VariantLocator
from webp_media.models import AttachmentMetadata
from webp_media.outcome import ConversionOutcome, OutcomeContext
from webp_media.store import AttachmentStore

logger = logging.getLogger(__name__)

FileHandler = Callable[[Path, "str | None"], ConversionOutcome]


def coerce_metadata(metadata: AttachmentMetadata | dict[str, Any] | None) -> AttachmentMetadata:
    """Accept stored metadata as a record or a dict; reject anything empty."""
    if isinstance(metadata, AttachmentMetadata):
        return metadata
    if isinstance(metadata, dict) and metadata:
        parsed = AttachmentMetadata.from_dict(metadata)
        if parsed is not None:
            return parsed
    raise ValidationError("Invalid metadata provided.")


def validate_attachment_id(attachment_id: Any) -> int:
    if isinstance(attachment_id, bool) or not isinstance(attachment_id, int) or attachment_id <= 0:
        raise ValidationError("Invalid attachment ID provided.")
    return attachment_id


class FilePipeline:
    """
    Runs a per-file handler over an attachment's main file and size variants.

    Size variants whose file is missing are skipped without an outcome.
    """

    context: OutcomeContext = "convert"

    def __init__(
        self,
        store: AttachmentStore,
        locator: VariantLocator,
        settings: Settings | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.store = store
        self.locator = locator
        self.settings = settings or Settings()
        self._stop = stop_event or threading.Event()

    def should_stop(self) -> bool:
        """Check if remaining files should be skipped."""
        return self._stop.is_set()

    def outcome(self, success: bool, message: str, size: str | None = None) -> ConversionOutcome:
        return ConversionOutcome.create(success, message, self.context, size)

    def size_files(self, metadata: AttachmentMetadata) -> Iterator[tuple[str, Path]]:
        """(label, path) for every size variant present on disk."""
        directory = self.locator.media_root / metadata.directory
        for label, size in metadata.sizes.items():
            if not size.file:
                continue
            path = directory / size.file
            if not path.exists():
                logger.debug("Skipping missing %s variant: %s", label, path)
                continue
            yield label, path

    def fan_out(self, metadata: AttachmentMetadata, handler: FileHandler) -> list[ConversionOutcome]:
        jobs = list(self.size_files(metadata))
        workers = self.settings.workers

        if workers <= 1 or len(jobs) <= 1:
            outcomes: list[ConversionOutcome] = []
            for label, path in jobs:
                if self.should_stop():
                    break
                outcomes.append(handler(path, label))
            return outcomes

        def run(label: str, path: Path) -> ConversionOutcome | None:
            if self.should_stop():
                return None
            return handler(path, label)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(run, label, path) for label, path in jobs]
            results = [future.result() for future in futures]
        return [outcome for outcome in results if outcome is not None]

    def log_error(self, action: str, error: BaseException) -> None:
        """Debug log with the error text and where it was raised."""
        frames = traceback.extract_tb(error.__traceback__)
        if frames:
            frame = frames[-1]
            logger.debug("%s: %s in %s on line %d", action, error, Path(frame.filename).name, frame.lineno)
        else:
            logger.debug("%s: %s", action, error)
