"""Configuration shared by the pipelines, the rewrite engine and the app."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

RewriteMode = Literal["inline", "fallback"]
EncoderName = Literal["pillow", "cwebp"]

DEFAULT_QUALITY = 85
REWRITE_MODES: tuple[str, ...] = ("inline", "fallback")
ENCODERS: tuple[str, ...] = ("pillow", "cwebp")


def clamp_quality(value: Any) -> int:
    """Coerce a quality setting into 0..100, falling back to the default."""
    try:
        quality = int(value)
    except (TypeError, ValueError):
        return DEFAULT_QUALITY
    return max(0, min(100, quality))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded from environment variables."""

    quality: int = DEFAULT_QUALITY
    rewrite_mode: RewriteMode = "inline"
    force: bool = False
    delete_on_teardown: bool = False
    debug: bool = False
    media_root: Path = Path("uploads")
    media_url: str = "/uploads"
    manifest: Path | None = None
    encoder: EncoderName = "pillow"
    workers: int = 1

    def __post_init__(self) -> None:
        # frozen, so normalise through object.__setattr__
        object.__setattr__(self, "quality", clamp_quality(self.quality))
        if self.rewrite_mode not in REWRITE_MODES:
            object.__setattr__(self, "rewrite_mode", "inline")
        if self.encoder not in ENCODERS:
            object.__setattr__(self, "encoder", "pillow")
        object.__setattr__(self, "workers", max(1, int(self.workers)))
        object.__setattr__(self, "media_root", Path(self.media_root))
        if self.manifest is not None:
            object.__setattr__(self, "manifest", Path(self.manifest))

    @property
    def manifest_path(self) -> Path:
        return self.manifest if self.manifest is not None else self.media_root / "attachments.json"

    @property
    def fallback_mode(self) -> bool:
        return self.rewrite_mode == "fallback"

    @classmethod
    def load(cls) -> Settings:
        """Load settings from environment variables."""
        manifest = os.getenv("WEBP_MANIFEST")
        workers = os.getenv("WEBP_WORKERS", "1")
        return cls(
            quality=clamp_quality(os.getenv("WEBP_QUALITY", str(DEFAULT_QUALITY))),
            rewrite_mode=os.getenv("WEBP_REWRITE_MODE", "inline").strip().lower(),  # type: ignore[arg-type]
            force=_env_bool("WEBP_FORCE"),
            delete_on_teardown=_env_bool("WEBP_DELETE_ON_TEARDOWN"),
            debug=_env_bool("WEBP_DEBUG"),
            media_root=Path(os.getenv("WEBP_MEDIA_ROOT", "uploads")),
            media_url=os.getenv("WEBP_MEDIA_URL", "/uploads"),
            manifest=Path(manifest) if manifest else None,
            encoder=os.getenv("WEBP_ENCODER", "pillow").strip().lower(),  # type: ignore[arg-type]
            workers=int(workers) if workers.isdigit() else 1,
        )

    def replace(self, **changes: Any) -> Settings:
        """Return a copy with the given fields changed; None values are ignored."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return dataclasses.replace(self, **changes)
