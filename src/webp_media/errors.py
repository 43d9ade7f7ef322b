"""
Error taxonomy for conversion, cleanup and rewriting.

Pipelines raise these internally and turn them into outcomes at their
public boundary, so callers never have to catch them.
"""

from __future__ import annotations


class WebpMediaError(Exception):
    """Base class for every error raised by the media packages."""
    pass


class ValidationError(WebpMediaError):
    """Raised when an input has the wrong shape (bad id, empty metadata)."""
    pass


class NotFoundError(WebpMediaError):
    """Raised when a source file, WebP file or attachment is missing."""
    pass


class WritePermissionError(WebpMediaError):
    """Raised when a file cannot be modified."""
    pass


class UnsupportedFormatError(WebpMediaError):
    """Raised when a mime type or extension is outside the raster set."""
    pass


class CodecError(WebpMediaError):
    """Raised when decoding or encoding an image fails."""
    pass


class AlreadyConvertedError(WebpMediaError):
    """Raised when a file already has (or already is) its WebP counterpart."""
    pass
