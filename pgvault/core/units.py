"""Byte-count helpers. Sizes are plain ints everywhere, never floats."""

from __future__ import annotations

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB


def format_bytes(num_bytes: int) -> str:
    """Render a byte count with the largest whole unit (truncating)."""
    if num_bytes < KIB:
        return f"{num_bytes}B"
    if num_bytes < MIB:
        return f"{num_bytes // KIB}KB"
    if num_bytes < GIB:
        return f"{num_bytes // MIB}MB"
    return f"{num_bytes // GIB}GB"


def percentage_of(value: int, percentage: int) -> int:
    """Integer percentage with truncating division: ``value * pct // 100``."""
    return value * percentage // 100
