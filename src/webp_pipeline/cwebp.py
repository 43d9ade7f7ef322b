"""
WebP encoding through the cwebp command-line tool.

Decoding still goes through Pillow; the normalised raster is handed to
cwebp as a lossless PNG intermediate.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path

from PIL import Image

from webp_media.errors import CodecError

from .codec import PillowCodec

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class CwebpError(CodecError):
    """Raised when cwebp fails to convert an image."""

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"cwebp failed (rc={returncode}): {stderr.strip()}")


def run_cwebp(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> tuple[int, str, str]:
    """Run cwebp with the given arguments."""
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return 124, "", f"TimeoutExpired after {timeout}s"
    except FileNotFoundError:
        return 127, "", "cwebp not found. Install webp package."


class CwebpCodec(PillowCodec):
    """Pillow decoding, cwebp encoding."""

    def __init__(self, binary: str = "cwebp", timeout: float = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def encode(self, image: Image.Image, quality: int) -> bytes:
        with tempfile.TemporaryDirectory(prefix="webp-media-") as tmp:
            source = Path(tmp) / "source.png"
            output = Path(tmp) / "output.webp"
            try:
                image.save(source, "PNG")
            except (OSError, ValueError) as e:
                raise CodecError(f"Cannot write intermediate PNG: {e}") from e

            cmd = [self.binary, "-quiet", "-q", str(quality), "-alpha_q", "100",
                   str(source), "-o", str(output)]
            logger.debug("Running: %s", " ".join(cmd))
            returncode, _, stderr = run_cwebp(cmd, self.timeout)

            if returncode != 0 or not output.exists():
                raise CwebpError(cmd, returncode, stderr)

            data = output.read_bytes()

        if not data:
            raise CodecError("cwebp produced no data")
        return data
