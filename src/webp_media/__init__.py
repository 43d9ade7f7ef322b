"""
Shared types for WebP conversion and delivery.

Used by the pipelines, the rewrite engine and the app:
- outcome records and the error taxonomy
- attachment models and stores
- configuration
- browser capability detection, srcset helpers, WebP file location
"""

from .browser import BrowserDescriptor, parse_user_agent, supports_webp
from .config import DEFAULT_QUALITY, Settings, clamp_quality
from .errors import (
    AlreadyConvertedError,
    CodecError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
    WebpMediaError,
    WritePermissionError,
)
from .locator import VariantLocator, WebpCandidate, webp_path, webp_reference
from .mime import sniff_mime_type
from .models import SUPPORTED_MIME_TYPES, AttachmentMetadata, SizeVariant
from .outcome import ConversionOutcome
from .srcset import SrcsetEntry, normalize_srcset, parse_srcset, serialize_srcset
from .store import AttachmentStore, ManifestStore, is_webp_attachment

__all__ = [
    # Outcomes and errors
    "ConversionOutcome",
    "WebpMediaError",
    "ValidationError",
    "NotFoundError",
    "WritePermissionError",
    "UnsupportedFormatError",
    "CodecError",
    "AlreadyConvertedError",
    # Attachments
    "SUPPORTED_MIME_TYPES",
    "AttachmentMetadata",
    "SizeVariant",
    "AttachmentStore",
    "ManifestStore",
    "is_webp_attachment",
    "sniff_mime_type",
    # Config
    "DEFAULT_QUALITY",
    "Settings",
    "clamp_quality",
    # Browser
    "BrowserDescriptor",
    "parse_user_agent",
    "supports_webp",
    # Files and markup
    "VariantLocator",
    "WebpCandidate",
    "webp_path",
    "webp_reference",
    "SrcsetEntry",
    "parse_srcset",
    "serialize_srcset",
    "normalize_srcset",
]
