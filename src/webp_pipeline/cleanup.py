"""
Removal of WebP counterparts.

Used when an attachment is deleted or when every WebP file is purged.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from webp_media.errors import (
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
    WebpMediaError,
    WritePermissionError,
)
from webp_media.locator import webp_path
from webp_media.mime import sniff_mime_type
from webp_media.models import SUPPORTED_MIME_TYPES, AttachmentMetadata
from webp_media.outcome import ConversionOutcome, OutcomeContext

from .base import FilePipeline, coerce_metadata, validate_attachment_id

logger = logging.getLogger(__name__)


def is_writable(path: Path) -> bool:
    return os.access(path, os.W_OK)


class CleanupPipeline(FilePipeline):
    """Deletes the WebP files of an attachment's main file and size variants."""

    context: OutcomeContext = "delete"

    def prepare(
        self,
        attachment_id: int,
        metadata: AttachmentMetadata | dict[str, Any] | None,
    ) -> list[ConversionOutcome]:
        result: list[ConversionOutcome] = []
        try:
            validate_attachment_id(attachment_id)
            record = coerce_metadata(metadata)

            file = self.store.file_path(attachment_id)
            if file is None or not str(file) or not file.exists():
                raise NotFoundError(f"File does not exist for attachment ID: {attachment_id}")

            if not is_writable(file):
                raise WritePermissionError(f"File is not writable: {file.name}")

            result.append(self.delete(file))

            if not record.sizes:
                return result

            result.extend(self.fan_out(record, self.delete))
        except Exception as e:
            self.log_error("Error preparing deletion", e)
            result.append(self.outcome(False, str(e)))

        return result

    def delete(self, file_path: Path | str | None, size: str | None = None) -> ConversionOutcome:
        """
        Delete the WebP counterpart of one file.

        A file that is itself WebP is a successful no-op; a missing WebP
        counterpart is reported as unsuccessful so bulk reports can tell
        "never existed" from "removed".
        """
        try:
            if not file_path:
                raise ValidationError("Invalid file path provided.")

            path = Path(file_path)
            if not path.exists():
                raise NotFoundError(f"File does not exist: {path}")

            if not path.stem:
                raise ValidationError(f"Unable to parse file path: {path.name}")

            if path.suffix.lower() == ".webp":
                return self.outcome(True, f"File is already a WebP file, nothing to delete: {path.name}", size)

            mime_type = sniff_mime_type(path)
            if mime_type not in SUPPORTED_MIME_TYPES:
                raise UnsupportedFormatError(f"Unsupported file type: {mime_type}")

            target = webp_path(path)
            if not target.exists():
                return self.outcome(False, f"WebP file does not exist, nothing to delete: {path.name}", size)

            if not is_writable(target):
                raise WritePermissionError(f"WebP file is not writable: {target.name}")

            try:
                target.unlink()
            except OSError as e:
                raise WebpMediaError(f"Failed to delete WebP file: {target.name}") from e

            logger.info("Deleted %s", target.name)
            return self.outcome(True, f"Successfully deleted WebP file: {target.name}", size)

        except Exception as e:
            self.log_error("Error deleting WebP file", e)
            return self.outcome(False, str(e), size)
