"""
cpu_parsers.py - Field decoders for CPU descriptor text

Lenient parsers shared by the /proc/cpuinfo scanner and the sysctl adapter.
Every function here is total: malformed input decodes to zero/empty rather
than raising.
"""

import string
from typing import Tuple

KB = 1024
MB = 1024 * 1024


# ============================================================================
# Primitive Parsers
# ============================================================================

def parse_int(s: str) -> int:
    """
    Parse unsigned decimal or "0x"-prefixed hexadecimal text.

    Returns 0 for anything else (signs, stray characters, empty input).
    """
    if s[:2] in ("0x", "0X"):
        digits = s[2:]
        if digits and all(c in string.hexdigits for c in digits):
            return int(digits, 16)
        return 0
    # int() also takes signs, whitespace, underscores and non-ASCII digits
    if s.isascii() and s.isdigit():
        return int(s, 10)
    return 0


def parse_float(s: str) -> float:
    """Parse decimal floating point text, 0.0 if malformed."""
    if not s.isascii() or "_" in s or s != s.strip():
        return 0.0
    try:
        return float(s)
    except ValueError:
        return 0.0


def parse_bool(s: str) -> bool:
    return s == "yes"


def split_line(line: str) -> Tuple[str, str]:
    """
    Split a "key: value" line on its first colon.

    Both halves are stripped of surrounding whitespace. A line without a
    colon yields ("", ""), which the scanner treats as a record separator.
    """
    key, sep, value = line.partition(":")
    if not sep:
        return "", ""
    return key.strip(), value.strip()


# ============================================================================
# Composite Field Decoders
# ============================================================================

def parse_size(s: str) -> int:
    """
    Parse a cache size such as "512 KB" or "16 MB" into bytes.

    Returns 0 when the unit is missing or not KB/MB.
    """
    number, sep, unit = s.partition(" ")
    if not sep:
        return 0
    if unit == "KB":
        return parse_int(number) * KB
    if unit == "MB":
        return parse_int(number) * MB
    return 0


def parse_addr_sizes(s: str) -> Tuple[int, int]:
    """
    Parse an "address sizes" value with the format

        40 bits physical, 48 bits virtual

    Returns (physical_bits, virtual_bits), or (0, 0) on any deviation.
    """
    lhs, sep, rhs = s.partition(", ")
    if not sep or not rhs:
        return 0, 0
    if not lhs.endswith(" bits physical") or not rhs.endswith(" bits virtual"):
        return 0, 0
    phys = parse_int(lhs[:-len(" bits physical")])
    virt = parse_int(rhs[:-len(" bits virtual")])
    return phys, virt


def parse_tlb(s: str) -> Tuple[int, int]:
    """
    Parse a "TLB size" value with the format

        1024 4K pages

    Returns (num_pages, page_size_bytes), or (0, 0) on any deviation.
    """
    if not s.endswith(" pages"):
        return 0, 0
    s = s[:-len(" pages")]

    if s.endswith("K"):
        unit = KB
    elif s.endswith("M"):
        unit = MB
    else:
        return 0, 0
    s = s[:-1]

    count, sep, page = s.partition(" ")
    if not sep:
        return 0, 0
    return parse_int(count), parse_int(page) * unit
