"""
WebP capability detection from request headers.

The Accept header is authoritative. Without it, the user agent is matched
against a fixed browser table and the major version is compared with the
first release that shipped WebP support.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "?"

# (token, browser name, version pattern); order matters, first hit wins
BROWSER_TOKENS: tuple[tuple[str, str, re.Pattern[str]], ...] = (
    ("Edge", "Edge", re.compile(r"Edge[/ ]([0-9.]+)", re.IGNORECASE)),
    ("OPR", "Opera", re.compile(r"OPR/([0-9.]+)")),
    ("Opera", "Opera", re.compile(r"Opera[/ ]([0-9.]+)", re.IGNORECASE)),
    ("Chrome", "Chrome", re.compile(r"Chrome[/ ]([0-9.]+)", re.IGNORECASE)),
    ("Safari", "Safari", re.compile(r"Version/([0-9.]+)")),
    ("Firefox", "Firefox", re.compile(r"Firefox[/ ]([0-9.]+)", re.IGNORECASE)),
    ("MSIE", "IE", re.compile(r"MSIE[/ ]([0-9.]+)", re.IGNORECASE)),
    ("Trident", "IE", re.compile(r"rv:([0-9.]+)")),
    ("SamsungBrowser", "Samsung", re.compile(r"SamsungBrowser/([0-9.]+)")),
    ("Android", "Android", re.compile(r"Android\s([0-9.]+)")),
)

CHROME_VERSION_RE = re.compile(r"Chrome/([0-9.]+)")

# browser name -> first major version with WebP support
MIN_WEBP_VERSIONS: dict[str, int] = {
    "chrome": 32,
    "firefox": 65,
    "edge": 18,
    "opera": 19,
    "safari": 16,
    "android": 4,
    "samsung": 4,
}


@dataclass(frozen=True)
class BrowserDescriptor:
    name: str = "Unknown"
    version: str = UNKNOWN_VERSION

    @property
    def major(self) -> int | None:
        """Leading version component, or None when the version is unknown."""
        if self.version in ("", UNKNOWN_VERSION):
            return None
        head = self.version.split(".")[0]
        return int(head) if head.isdigit() else None


def parse_user_agent(user_agent: str | None) -> BrowserDescriptor:
    """Identify the browser and its version from a User-Agent string."""
    user_agent = user_agent or ""
    lowered = user_agent.lower()
    name = "Unknown"
    version = ""

    for token, browser_name, pattern in BROWSER_TOKENS:
        if token.lower() in lowered:
            name = browser_name
            match = pattern.search(user_agent)
            if match:
                version = match.group(1)
            break

    # Chrome sends "Safari/537.36" too
    if name == "Safari" and "chrome" in lowered:
        name = "Chrome"
        match = CHROME_VERSION_RE.search(user_agent)
        version = match.group(1) if match else ""

    return BrowserDescriptor(name=name, version=version or UNKNOWN_VERSION)


def supports_webp(accept: str | None, user_agent: str | None) -> bool:
    """True if a client sending these headers can display WebP images."""
    if "image/webp" in (accept or ""):
        return True

    browser = parse_user_agent(user_agent)
    name = browser.name.lower()

    if name == "ie":
        return False

    for key, minimum in MIN_WEBP_VERSIONS.items():
        if key not in name:
            continue
        major = browser.major
        if major is None:
            logger.debug("Unknown %s version, assuming no WebP support", browser.name)
            return False
        if major >= minimum:
            return True

    return False
