"""
HTML rewriting for WebP delivery.

Content-rendering code passes each HTML fragment through
`RewriteEngine.rewrite` together with the request's Accept and User-Agent
headers. Nothing is written to disk.
"""

from .engine import IMG_TAG_RE, RewriteEngine
from .modes import add_attributes, render_inline, render_picture
from .responsive import attachment_srcset, image_dimensions, sizes_attribute

__all__ = [
    "IMG_TAG_RE",
    "RewriteEngine",
    "add_attributes",
    "render_inline",
    "render_picture",
    "attachment_srcset",
    "image_dimensions",
    "sizes_attribute",
]
