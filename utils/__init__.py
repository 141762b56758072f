"""
Utility modules for the MCQ Question Bank pipeline.

The Gemini client lives in ``utils.gemini_client`` and is imported from there
directly.
"""

from .image_utils import (
    encode_image,
    decode_image,
    mime_type_for,
)
from .json_repair import sanitize_json_response, strip_code_fence
from .usage import TokenUsage, estimate_cost, format_cost, parse_cost

__all__ = [
    "encode_image",
    "decode_image",
    "mime_type_for",
    "sanitize_json_response",
    "strip_code_fence",
    "TokenUsage",
    "estimate_cost",
    "format_cost",
    "parse_cost",
]
