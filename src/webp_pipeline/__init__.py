"""
WebP conversion and cleanup pipelines.

Both pipelines fan one attachment out over its main file and size
variants and return one outcome per file. They never raise.

The default codec is Pillow; set the encoder to "cwebp" to shell out to
the cwebp binary instead (apt install webp).
"""

from .bulk import BulkSummary, convert_all, delete_all, summarize, teardown
from .cleanup import CleanupPipeline
from .codec import ImageCodec, PillowCodec, make_codec, write_new_file
from .convert import ConversionPipeline
from .cwebp import CwebpCodec, CwebpError, run_cwebp

__all__ = [
    "ConversionPipeline",
    "CleanupPipeline",
    "ImageCodec",
    "PillowCodec",
    "CwebpCodec",
    "CwebpError",
    "run_cwebp",
    "make_codec",
    "write_new_file",
    "BulkSummary",
    "convert_all",
    "delete_all",
    "summarize",
    "teardown",
]
