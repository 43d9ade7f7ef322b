from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from webp_media.config import Settings
from webp_media.locator import VariantLocator
from webp_media.models import AttachmentMetadata, SizeVariant
from webp_media.store import ManifestStore

FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".gif": "GIF"}


def write_image(path: Path, size: tuple[int, int] = (80, 60), mode: str = "RGB",
                color: tuple[int, ...] | int = (200, 30, 30)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new(mode, size, color)
    image.save(path, FORMATS[path.suffix.lower()])
    return path


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def locator(media_root: Path) -> VariantLocator:
    return VariantLocator(media_root, "/uploads")


@pytest.fixture
def store(locator: VariantLocator) -> ManifestStore:
    return ManifestStore(locator)


@pytest.fixture
def settings(media_root: Path) -> Settings:
    return Settings(media_root=media_root, media_url="/uploads")


@pytest.fixture
def make_attachment(media_root: Path, store: ManifestStore) -> Callable[..., AttachmentMetadata]:
    """Register an attachment and write its image files under the media root."""

    def factory(
        attachment_id: int,
        file: str,
        size: tuple[int, int] = (80, 60),
        sizes: dict[str, tuple[str, int, int]] | None = None,
        mime_type: str | None = None,
        missing: tuple[str, ...] = (),
    ) -> AttachmentMetadata:
        main = media_root / file
        if main.suffix.lower() in FORMATS:
            write_image(main, size)

        variants: dict[str, SizeVariant] = {}
        for label, (name, width, height) in (sizes or {}).items():
            variants[label] = SizeVariant(label=label, file=name, width=width, height=height)
            if label not in missing:
                write_image(main.parent / name, (width, height))

        metadata = AttachmentMetadata(
            file=file,
            width=size[0],
            height=size[1],
            mime_type=mime_type or Image.MIME.get(FORMATS.get(main.suffix.lower(), ""), "image/webp"),
            sizes=variants,
        )
        store.add(attachment_id, metadata)
        return metadata

    return factory
