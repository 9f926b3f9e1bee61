"""
Utility functions for hookfetch.
"""

from hookfetch.utils.text import decode_text_smart, is_probably_text

__all__ = [
    "decode_text_smart",
    "is_probably_text",
]
