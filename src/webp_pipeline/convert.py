"""
Conversion of attachments to WebP.

Every file is converted at most once: an existing `<name>.webp` is never
overwritten, and attachments stored as WebP are left alone.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from webp_media.config import Settings
from webp_media.errors import (
    AlreadyConvertedError,
    CodecError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
)
from webp_media.locator import VariantLocator, webp_path
from webp_media.mime import sniff_mime_type
from webp_media.models import SUPPORTED_MIME_TYPES, AttachmentMetadata
from webp_media.outcome import ConversionOutcome, OutcomeContext
from webp_media.store import AttachmentStore, is_webp_attachment

from .base import FilePipeline, coerce_metadata, validate_attachment_id
from .codec import ImageCodec, make_codec, write_new_file

logger = logging.getLogger(__name__)


class ConversionPipeline(FilePipeline):
    """Converts an attachment's main file and size variants to WebP."""

    context: OutcomeContext = "convert"

    def __init__(
        self,
        store: AttachmentStore,
        locator: VariantLocator,
        settings: Settings | None = None,
        codec: ImageCodec | None = None,
        stop_event: threading.Event | None = None,
    ):
        super().__init__(store, locator, settings, stop_event)
        self.codec = codec or make_codec(self.settings.encoder)

    def prepare(
        self,
        attachment_id: int,
        metadata: AttachmentMetadata | dict[str, Any] | None,
    ) -> list[ConversionOutcome]:
        """
        Convert the main file, then every size variant found on disk.

        Returns one outcome per processed file. Validation problems give a
        single error outcome; nothing is raised.
        """
        result: list[ConversionOutcome] = []
        try:
            validate_attachment_id(attachment_id)
            record = coerce_metadata(metadata)

            file = self.store.file_path(attachment_id)
            if file is None or not str(file) or not file.exists():
                raise NotFoundError(f"File does not exist for attachment ID: {attachment_id}")

            mime_type = self.store.mime_type(attachment_id)
            if mime_type not in SUPPORTED_MIME_TYPES:
                raise UnsupportedFormatError(f"Unsupported file type: {mime_type}")

            result.append(self.convert(file))

            if not record.sizes:
                return result

            result.extend(self.fan_out(record, self.convert))
        except Exception as e:
            self.log_error("Error preparing conversion", e)
            result.append(self.outcome(False, str(e)))

        return result

    def convert(self, file_path: Path | str | None, size: str | None = None) -> ConversionOutcome:
        """Convert one file to `<name>.webp` beside it."""
        try:
            if not file_path:
                raise ValidationError("Invalid file path provided.")

            path = Path(file_path)
            if not path.exists():
                raise NotFoundError(f"File does not exist: {path}")

            if not path.stem:
                raise ValidationError(f"Unable to parse file path: {path.name}")

            if is_webp_attachment(self.store, self.locator, path):
                raise AlreadyConvertedError(f"The original file is already a WebP file: {path.name}")

            mime_type = sniff_mime_type(path)
            if mime_type not in SUPPORTED_MIME_TYPES:
                raise UnsupportedFormatError(f"Unsupported file type: {mime_type}")

            target = webp_path(path)
            if target.exists():
                raise AlreadyConvertedError(f"WebP file already exists: {target.name}")

            quality = self.settings.quality

            try:
                image = self.codec.decode(path)
            except UnsupportedFormatError:
                return self.outcome(False, f"Unsupported file type: {path.name}", size)
            except CodecError as e:
                self.log_error("Error decoding file", e)
                return self.outcome(False, f"Failed to create image resource: {path.name}", size)

            try:
                data = self.codec.encode(image, quality)
                write_new_file(target, data)
            except FileExistsError:
                raise AlreadyConvertedError(f"WebP file already exists: {target.name}")
            except (CodecError, OSError) as e:
                self.log_error("Error saving WebP file", e)
                return self.outcome(False, f"Failed to save WebP file: {target.name}", size)
            finally:
                image.close()

            logger.info("Converted %s (quality %d)", path.name, quality)
            return self.outcome(True, f"Successfully converted: {path.name}", size)

        except Exception as e:
            self.log_error("Error converting file", e)
            return self.outcome(False, str(e), size)
