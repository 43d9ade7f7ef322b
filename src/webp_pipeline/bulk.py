"""Bulk conversion and purge over every supported attachment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from webp_media.config import Settings
from webp_media.models import SUPPORTED_MIME_TYPES
from webp_media.outcome import ConversionOutcome
from webp_media.store import AttachmentStore

from .cleanup import CleanupPipeline
from .convert import ConversionPipeline

logger = logging.getLogger(__name__)

BulkResults = dict[int, list[ConversionOutcome]]


@dataclass
class BulkSummary:
    attachments: int = 0
    files: int = 0
    succeeded: int = 0
    failed: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0


def _run_all(pipeline: ConversionPipeline | CleanupPipeline, store: AttachmentStore) -> BulkResults:
    results: BulkResults = {}
    for attachment_id in store.ids(SUPPORTED_MIME_TYPES):
        if pipeline.should_stop():
            logger.info("Stopped after %d attachments", len(results))
            break
        results[attachment_id] = pipeline.prepare(attachment_id, store.metadata(attachment_id))
    return results


def convert_all(pipeline: ConversionPipeline, store: AttachmentStore) -> BulkResults:
    """Convert every supported attachment; returns outcomes per attachment id."""
    results = _run_all(pipeline, store)
    logger.info("Bulk conversion processed %d attachments", len(results))
    return results


def delete_all(pipeline: CleanupPipeline, store: AttachmentStore) -> BulkResults:
    """Delete the WebP files of every supported attachment."""
    results = _run_all(pipeline, store)
    logger.info("Bulk deletion processed %d attachments", len(results))
    return results


def summarize(results: Mapping[int, list[ConversionOutcome]]) -> BulkSummary:
    summary = BulkSummary(attachments=len(results))
    for outcomes in results.values():
        for outcome in outcomes:
            summary.files += 1
            if outcome.success:
                summary.succeeded += 1
            else:
                summary.failed += 1
    return summary


def teardown(settings: Settings, pipeline: CleanupPipeline, store: AttachmentStore) -> BulkResults:
    """Purge all WebP files if the installation asked for it on teardown."""
    if not settings.delete_on_teardown:
        logger.info("Teardown purge disabled, keeping WebP files")
        return {}
    return delete_all(pipeline, store)
