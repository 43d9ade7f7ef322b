"""HTTP routes."""

from .attachments import attachments_bp

__all__ = ["attachments_bp"]
