"""
Rewriting of <img> elements in HTML fragments to serve WebP files.

Each element is decided on its own: capability, WebP file on disk, no size
regression, owning attachment, metadata. Any miss leaves the element
exactly as it was.
"""

from __future__ import annotations

import logging
import re

from webp_media.browser import supports_webp
from webp_media.config import Settings
from webp_media.locator import VariantLocator
from webp_media.store import AttachmentStore

from .modes import render_inline, render_picture

logger = logging.getLogger(__name__)

IMG_TAG_RE = re.compile(r"""<img\s[^>]*?(?<![\w-])src\s*=\s*(["'])([^"']+)\1[^>]*>""", re.IGNORECASE)


class RewriteEngine:
    """Stateless: safe to share across requests and threads."""

    def __init__(self, store: AttachmentStore, locator: VariantLocator, settings: Settings | None = None):
        self.store = store
        self.locator = locator
        self.settings = settings or Settings()

    def rewrite(self, fragment: str, accept: str = "", user_agent: str = "") -> str:
        if not fragment or "<img" not in fragment.lower():
            return fragment
        return IMG_TAG_RE.sub(
            lambda match: self.rewrite_element(match.group(0), match.group(2), accept, user_agent),
            fragment,
        )

    def rewrite_element(self, tag: str, src: str, accept: str = "", user_agent: str = "") -> str:
        fallback = self.settings.fallback_mode

        if not fallback and not self.settings.force and not supports_webp(accept, user_agent):
            return tag

        try:
            candidate = self.locator.candidate(src)
            if not candidate.usable:
                if candidate.larger:
                    logger.debug("WebP larger than original, keeping %s", src)
                return tag

            attachment_id = self.store.id_from_url(src)
            if not attachment_id:
                return tag

            metadata = self.store.metadata(attachment_id)
            if metadata is None:
                return tag

            if fallback:
                return render_picture(tag, src, metadata, self.locator)
            return render_inline(tag, src, metadata, self.locator)
        except (OSError, ValueError) as e:
            logger.debug("Leaving %s unchanged: %s", src, e)
            return tag
