from __future__ import annotations

from pathlib import Path

import pytest

from webp_media.config import Settings
from webp_media.locator import VariantLocator
from webp_media.models import AttachmentMetadata, SizeVariant
from webp_media.store import ManifestStore
from webp_rewrite.engine import RewriteEngine
from webp_rewrite.modes import add_attributes
from webp_rewrite.responsive import attachment_srcset, image_dimensions, matches_ratio, sizes_attribute

WEBP_ACCEPT = "text/html,image/webp,*/*"
OLD_IE = "Mozilla/5.0 (Windows NT 6.1; Trident/7.0; rv:11.0) like Gecko"

INLINE = (
    '<img src="/uploads/a.webp" alt="A" width="800" height="600"'
    ' srcset="/uploads/a-300x225.webp 300w, /uploads/a.webp 800w"'
    ' sizes="(max-width: 800px) 100vw, 800px">'
)


def touch(path: Path, size: int) -> None:
    path.write_bytes(b"x" * size)


@pytest.fixture
def library(media_root: Path, store: ManifestStore) -> AttachmentMetadata:
    for name in ("a.jpg", "a-300x225.jpg", "a-150x150.jpg"):
        touch(media_root / name, 1000)
    for name in ("a.webp", "a-300x225.webp"):
        touch(media_root / name, 100)

    metadata = AttachmentMetadata(
        file="a.jpg",
        width=800,
        height=600,
        mime_type="image/jpeg",
        sizes={
            "thumbnail": SizeVariant("thumbnail", "a-150x150.jpg", 150, 150),
            "medium": SizeVariant("medium", "a-300x225.jpg", 300, 225),
        },
    )
    store.add(1, metadata)
    return metadata


@pytest.fixture
def engine(store: ManifestStore, locator: VariantLocator, settings: Settings, library) -> RewriteEngine:
    return RewriteEngine(store, locator, settings)


def test_inline_rewrite(engine: RewriteEngine) -> None:
    html = '<p>Hi</p><img src="/uploads/a.jpg" alt="A"><p>Bye</p>'

    assert engine.rewrite(html, accept=WEBP_ACCEPT) == f"<p>Hi</p>{INLINE}<p>Bye</p>"


def test_inline_keeps_self_closing_tag(engine: RewriteEngine) -> None:
    result = engine.rewrite('<img src="/uploads/a.jpg" />', accept=WEBP_ACCEPT)

    assert result.startswith('<img src="/uploads/a.webp"')
    assert result.endswith(' sizes="(max-width: 800px) 100vw, 800px" />')


def test_inline_swaps_existing_srcset(engine: RewriteEngine) -> None:
    tag = '<img src="/uploads/a.jpg" srcset="/uploads/a.jpg 800w, /uploads/a-150x150.jpg 150w">'

    result = engine.rewrite(tag, accept=WEBP_ACCEPT)

    assert 'srcset="/uploads/a-150x150.jpg 150w, /uploads/a.webp 800w"' in result
    assert "sizes=" in result


def test_existing_attributes_are_not_repeated(engine: RewriteEngine) -> None:
    result = engine.rewrite('<img width="400" src="/uploads/a.jpg">', accept=WEBP_ACCEPT)

    assert result.count("width=") == 1
    assert 'width="400"' in result
    assert 'height="600"' in result


def test_unsupported_browser_is_left_alone(engine: RewriteEngine) -> None:
    html = '<img src="/uploads/a.jpg">'

    assert engine.rewrite(html, accept="text/html", user_agent=OLD_IE) == html


def test_user_agent_alone_enables_rewrite(engine: RewriteEngine) -> None:
    ua = "Mozilla/5.0 (Windows NT 10.0) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"

    assert 'src="/uploads/a.webp"' in engine.rewrite('<img src="/uploads/a.jpg">', user_agent=ua)


def test_force_ignores_capability(store: ManifestStore, locator: VariantLocator, settings: Settings,
                                  library) -> None:
    engine = RewriteEngine(store, locator, settings.replace(force=True))

    assert 'src="/uploads/a.webp"' in engine.rewrite('<img src="/uploads/a.jpg">', user_agent=OLD_IE)


def test_fallback_wraps_in_picture(store: ManifestStore, locator: VariantLocator, settings: Settings,
                                   library) -> None:
    engine = RewriteEngine(store, locator, settings.replace(rewrite_mode="fallback"))
    tag = '<img src="/uploads/a.jpg" alt="A">'

    result = engine.rewrite(tag, user_agent=OLD_IE)

    assert result == (
        '<picture><source type="image/webp"'
        ' srcset="/uploads/a-300x225.webp 300w, /uploads/a.webp 800w"'
        ' sizes="(max-width: 800px) 100vw, 800px">'
        f"{tag}</picture>"
    )


def test_larger_webp_is_not_served(media_root: Path, engine: RewriteEngine) -> None:
    touch(media_root / "a.webp", 5000)
    html = '<img src="/uploads/a.jpg">'

    assert engine.rewrite(html, accept=WEBP_ACCEPT) == html


@pytest.mark.parametrize(
    "html",
    [
        '<img src="/uploads/a.jpg?ver=2">',
        '<img src="/uploads/a.webp">',
        '<img src="/uploads/missing.jpg">',
        '<img data-src="/uploads/a.jpg">',
        '<img src="https://cdn.example.com/a.jpg">',
        "<p>no images here</p>",
        "",
    ],
)
def test_elements_left_unchanged(engine: RewriteEngine, html: str) -> None:
    assert engine.rewrite(html, accept=WEBP_ACCEPT) == html


def test_webp_without_attachment_is_left_alone(media_root: Path, engine: RewriteEngine) -> None:
    touch(media_root / "orphan.jpg", 1000)
    touch(media_root / "orphan.webp", 100)
    html = '<img src="/uploads/orphan.jpg">'

    assert engine.rewrite(html, accept=WEBP_ACCEPT) == html


def test_rewrite_is_deterministic(engine: RewriteEngine) -> None:
    html = '<img src="/uploads/a.jpg"><img src=\'/uploads/a-300x225.jpg\'>'

    assert engine.rewrite(html, accept=WEBP_ACCEPT) == engine.rewrite(html, accept=WEBP_ACCEPT)


def test_image_dimensions(library: AttachmentMetadata) -> None:
    assert image_dimensions("/uploads/a.jpg", library) == (800, 600)
    assert image_dimensions("/uploads/a-150x150.jpg?x=1", library) == (150, 150)
    assert image_dimensions("/uploads/other.jpg", library) is None


def test_attachment_srcset_needs_two_sources(locator: VariantLocator) -> None:
    single = AttachmentMetadata(file="b.jpg", width=640, height=480)

    assert attachment_srcset(single, locator) == []


def test_matches_ratio_and_sizes() -> None:
    assert matches_ratio(800, 600, 300, 225)
    assert matches_ratio(1024, 683, 300, 200)
    assert not matches_ratio(800, 600, 150, 150)
    assert sizes_attribute(300) == "(max-width: 300px) 100vw, 300px"
    assert sizes_attribute(None) == "100vw"


def test_add_attributes_escapes_values() -> None:
    assert add_attributes("<img src='a.jpg'>", {"alt": 'say "hi"'}) == "<img src='a.jpg' alt=\"say &#34;hi&#34;\">"
    assert add_attributes('<img src="a.jpg" alt="x">', {"alt": "y"}) == '<img src="a.jpg" alt="x">'


@pytest.fixture
def spaced(media_root: Path, store: ManifestStore) -> None:
    touch(media_root / "my photo.jpg", 1000)
    touch(media_root / "my photo.webp", 100)
    touch(media_root / "my photo-300x225.jpg", 1000)
    touch(media_root / "my photo-300x225.webp", 100)
    store.add(2, AttachmentMetadata(
        file="my photo.jpg",
        width=800,
        height=600,
        mime_type="image/jpeg",
        sizes={"medium": SizeVariant("medium", "my photo-300x225.jpg", 300, 225)},
    ))


def test_inline_srcset_encodes_spaces(engine: RewriteEngine, spaced) -> None:
    result = engine.rewrite('<img src="/uploads/my%20photo.jpg">', accept=WEBP_ACCEPT)

    assert 'src="/uploads/my%20photo.webp"' in result
    assert 'srcset="/uploads/my%20photo-300x225.webp 300w, /uploads/my%20photo.webp 800w"' in result


def test_fallback_srcset_encodes_spaces(store: ManifestStore, locator: VariantLocator, settings: Settings,
                                        spaced) -> None:
    engine = RewriteEngine(store, locator, settings.replace(rewrite_mode="fallback"))

    result = engine.rewrite('<img src="/uploads/my%20photo.jpg">')

    assert 'srcset="/uploads/my%20photo-300x225.webp 300w, /uploads/my%20photo.webp 800w"' in result
