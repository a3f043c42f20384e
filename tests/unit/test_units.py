"""Tests for byte formatting and truncating percentage math."""

from __future__ import annotations

from pgvault.core.units import GIB, KIB, MIB, format_bytes, percentage_of


class TestFormatBytes:
    def test_units(self):
        assert format_bytes(512) == "512B"
        assert format_bytes(3 * KIB) == "3KB"
        assert format_bytes(5 * MIB + 1) == "5MB"
        assert format_bytes(7 * GIB) == "7GB"

    def test_truncates(self):
        assert format_bytes(2 * GIB - 1) == "1023MB"


class TestPercentageOf:
    def test_truncating_division(self):
        assert percentage_of(999, 50) == 499
        assert percentage_of(3, 50) == 1

    def test_exact(self):
        assert percentage_of(GIB, 50) == GIB // 2
