"""Tests for the SizeValidator: first-run acceptance and truncating threshold."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from pgvault.core.errors import SizeValidationError
from pgvault.core.size_validator import SizeValidator
from pgvault.core.units import GIB, MIB
from pgvault.models.artifacts import BackupArtifact

PREFIX = "postgres-backups/"


def _artifact(tmp_path: Path, size: int) -> BackupArtifact:
    return BackupArtifact(name="new.backup", local_path=tmp_path / "new.backup", size_bytes=size)


class TestSizeValidator:
    def test_first_backup_always_accepted(self, tmp_path, store):
        result = SizeValidator().validate(_artifact(tmp_path, 1), store, PREFIX, 50)
        assert result.passed is True
        assert result.last_size is None

    def test_scenario_b_rejects_undersized(self, tmp_path, seed_store):
        """Last 1GB, new 400MB, 50% -> fails against a 512MB threshold."""
        store = seed_store([GIB])
        result = SizeValidator().validate(_artifact(tmp_path, 400 * MIB), store, PREFIX, 50)
        assert result.passed is False
        assert result.current_size == 400 * MIB
        assert result.last_size == GIB
        assert result.minimum_acceptable == GIB // 2

    def test_compares_against_newest_only(self, tmp_path, seed_store):
        store = seed_store([10 * GIB, 100 * MIB])
        result = SizeValidator().validate(_artifact(tmp_path, 60 * MIB), store, PREFIX, 50)
        assert result.passed is True
        assert result.last_size == 100 * MIB

    def test_threshold_truncates(self, tmp_path, seed_store):
        store = seed_store([999])
        validator = SizeValidator()
        assert validator.validate(_artifact(tmp_path, 499), store, PREFIX, 50).passed is True
        assert validator.validate(_artifact(tmp_path, 498), store, PREFIX, 50).passed is False

    def test_objects_outside_prefix_ignored(self, tmp_path, store):
        store.add("other/huge.backup", 100 * GIB, datetime(2026, 5, 1, tzinfo=timezone.utc))
        result = SizeValidator().validate(_artifact(tmp_path, 1), store, PREFIX, 50)
        assert result.passed is True

    def test_ensure_valid_raises_with_both_sizes(self, tmp_path, seed_store):
        store = seed_store([GIB])
        with pytest.raises(SizeValidationError) as excinfo:
            SizeValidator().ensure_valid(_artifact(tmp_path, 400 * MIB), store, PREFIX, 50)
        assert excinfo.value.current == 400 * MIB
        assert excinfo.value.last == GIB
        assert excinfo.value.minimum == GIB // 2
