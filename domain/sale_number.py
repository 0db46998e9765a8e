"""
Domain: Human-readable sale numbers (pure).

Format: SALE-YYYYMM#### where #### is a zero-padded sequence that restarts at
0001 in every year+month bucket. Lexicographic order of numbers within a
bucket equals numeric order of their sequences.

Allocation reads the greatest existing number in the bucket and increments
it. That read races with concurrent creations, so the result is a proposal:
create_sale_with_lines() repeats the read under a per-bucket lock before the
insert, and the database unique constraint catches whatever still collides
(see services/sale_service.py).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from .errors import ConflictError
from .time import require_utc_timestamp

SALE_NUMBER_PREFIX = "SALE"
SEQUENCE_WIDTH = 4
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1

_SALE_NUMBER_RE = re.compile(r"^SALE-(\d{4})(\d{2})(\d{4})$")


def bucket_prefix(year: int, month: int) -> str:
    """Prefix shared by every sale number in a year+month bucket."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"year must be between 1 and 9999, got {year}")
    return f"{SALE_NUMBER_PREFIX}-{year:04d}{month:02d}"


def bucket_prefix_for(at: datetime) -> str:
    require_utc_timestamp("at", at)
    return bucket_prefix(at.year, at.month)


def format_sale_number(year: int, month: int, sequence: int) -> str:
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"sequence must be between 1 and {MAX_SEQUENCE}, got {sequence}")
    return f"{bucket_prefix(year, month)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(sale_number: str) -> int:
    """Extract the numeric sequence from a sale number."""

    match = _SALE_NUMBER_RE.match(sale_number)
    if match is None:
        raise ValueError(f"Malformed sale number: {sale_number!r}")
    return int(match.group(3))


def next_sale_number(last_number: Optional[str], year: int, month: int) -> str:
    """
    Compute the number following `last_number` in the given bucket.

    Args:
        last_number: Greatest existing number in the bucket, or None if empty
        year: Bucket year
        month: Bucket month

    Returns:
        Next sale number, starting at SALE-YYYYMM0001

    Raises:
        ValueError: If last_number belongs to another bucket or is malformed
        ConflictError: If the bucket has no sequence numbers left
    """
    prefix = bucket_prefix(year, month)

    if last_number is None:
        return format_sale_number(year, month, 1)

    if not last_number.startswith(prefix):
        raise ValueError(f"{last_number!r} is not in bucket {prefix}")

    sequence = parse_sequence(last_number) + 1
    if sequence > MAX_SEQUENCE:
        raise ConflictError(f"Sale number sequence exhausted for {prefix}")

    return format_sale_number(year, month, sequence)


__all__ = [
    "SALE_NUMBER_PREFIX",
    "bucket_prefix",
    "bucket_prefix_for",
    "format_sale_number",
    "parse_sequence",
    "next_sale_number",
]
