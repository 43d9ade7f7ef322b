from __future__ import annotations

import threading
from pathlib import Path

from webp_media.config import Settings
from webp_media.locator import VariantLocator
from webp_media.models import AttachmentMetadata
from webp_media.store import ManifestStore
from webp_pipeline.bulk import convert_all, delete_all, summarize, teardown
from webp_pipeline.cleanup import CleanupPipeline
from webp_pipeline.convert import ConversionPipeline


def populate(make_attachment) -> None:
    make_attachment(1, "a.jpg", sizes={"thumbnail": ("a-150x150.jpg", 150, 150)})
    make_attachment(2, "b.png")
    make_attachment(3, "c.webp")


def test_convert_all_skips_unsupported(media_root: Path, store: ManifestStore, locator: VariantLocator,
                                       settings: Settings, make_attachment) -> None:
    populate(make_attachment)
    store.add(4, AttachmentMetadata(file="doc.pdf", mime_type="application/pdf"))

    results = convert_all(ConversionPipeline(store, locator, settings), store)

    assert sorted(results) == [1, 2]
    summary = summarize(results)
    assert (summary.attachments, summary.files, summary.succeeded, summary.failed) == (2, 3, 3, 0)
    assert summary.ok
    assert (media_root / "a-150x150.webp").exists()
    assert (media_root / "b.webp").exists()


def test_delete_all_after_convert(media_root: Path, store: ManifestStore, locator: VariantLocator,
                                  settings: Settings, make_attachment) -> None:
    populate(make_attachment)
    convert_all(ConversionPipeline(store, locator, settings), store)

    results = delete_all(CleanupPipeline(store, locator, settings), store)

    assert summarize(results).ok
    assert list(media_root.glob("*.webp")) == []


def test_bulk_run_honours_stop_event(store: ManifestStore, locator: VariantLocator, settings: Settings,
                                     make_attachment) -> None:
    populate(make_attachment)
    stop = threading.Event()
    stop.set()

    results = convert_all(ConversionPipeline(store, locator, settings, stop_event=stop), store)

    assert results == {}


def test_teardown_respects_setting(media_root: Path, store: ManifestStore, locator: VariantLocator,
                                   settings: Settings, make_attachment) -> None:
    populate(make_attachment)
    convert_all(ConversionPipeline(store, locator, settings), store)
    cleaner = CleanupPipeline(store, locator, settings)

    assert teardown(settings, cleaner, store) == {}
    assert (media_root / "a.webp").exists()

    purged = teardown(settings.replace(delete_on_teardown=True), cleaner, store)

    assert sorted(purged) == [1, 2]
    assert not (media_root / "a.webp").exists()


def test_summary_counts_failures(store: ManifestStore, locator: VariantLocator, settings: Settings,
                                 make_attachment) -> None:
    populate(make_attachment)

    results = delete_all(CleanupPipeline(store, locator, settings), store)
    summary = summarize(results)

    assert summary.failed == 3
    assert not summary.ok
