"""
Heuristics for telling text payloads from binary ones.
"""

from __future__ import annotations

import codecs

DEFAULT_ENCODINGS: tuple[str, ...] = ("utf-8", "utf-16-le", "utf-16-be", "iso-8859-1")


def _is_likely_text_byte(byte: int) -> bool:
    # Printable ASCII, tab/newline/carriage return, or a UTF-8 lead byte
    return 32 <= byte <= 126 or byte in (9, 10, 13) or 0xC2 <= byte <= 0xF4


def printable_byte_ratio(data: bytes, sample_size: int = 1024) -> float:
    """Ratio of likely-text bytes over an evenly spaced sample."""
    length = len(data)
    if not length:
        return 1.0
    step = max(1, -(-length // min(length, max(1, sample_size))))
    checked = printable = 0
    for i in range(0, length, step):
        checked += 1
        if _is_likely_text_byte(data[i]):
            printable += 1
    return printable / checked if checked else 1.0


def is_probably_text(data: bytes, sample_size: int = 1024, threshold: float = 0.85) -> bool:
    """Quickly check whether bytes are probably text."""
    if not data:
        return True
    return printable_byte_ratio(data, sample_size) >= threshold


def detect_bom(data: bytes) -> str | None:
    """Return the encoding named by a byte order mark, if any."""
    if data.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    if data.startswith(codecs.BOM_UTF16_LE):
        return "utf-16"
    if data.startswith(codecs.BOM_UTF16_BE):
        return "utf-16"
    return None


def text_quality_score(text: str) -> float:
    """Score in [0, 1]; replacement characters lower the score."""
    if not text:
        return 1.0
    return 1 - text.count("\ufffd") / len(text)


def decode_text_smart(
    data: bytes,
    encodings: tuple[str, ...] | list[str] = DEFAULT_ENCODINGS,
    sample_size: int = 1024,
    threshold: float = 0.85,
) -> str | None:
    """Decode bytes as text trying several encodings.

    Returns:
        The decoded text, or None if the data is likely not text
    """
    if not data:
        return ""
    if not is_probably_text(data, sample_size, threshold):
        return None

    order: list[str] = []
    for encoding in (detect_bom(data), *(encodings or ("utf-8",))):
        if encoding and encoding not in order:
            order.append(encoding)

    for encoding in order:
        try:
            text = data.decode(encoding, errors="replace")
        except LookupError:
            continue
        if text_quality_score(text) >= threshold:
            return text
    return None
