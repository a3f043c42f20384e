"""Shared test fixtures for pgvault."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from pgvault.config import BackupConfig
from pgvault.core.errors import DumpFailedError, RemoteStoreError
from pgvault.core.units import GIB
from pgvault.models.artifacts import RemoteObjectRef
from pgvault.storage.base import RemoteStore

PREFIX = "postgres-backups/"
BASE_TIME = datetime(2026, 1, 1, 3, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeRemoteStore(RemoteStore):
    """In-memory Remote Store with per-operation failure injection."""

    def __init__(self) -> None:
        self.objects: dict[str, RemoteObjectRef] = {}
        self.puts: list[dict[str, Any]] = []
        self.deleted: list[str] = []
        self.fail_list = False
        self.fail_access = False
        self.fail_put = False
        self.fail_delete: set[str] = set()

    def add(self, key: str, size_bytes: int, last_modified: datetime) -> RemoteObjectRef:
        ref = RemoteObjectRef(key=key, size_bytes=size_bytes, last_modified=last_modified)
        self.objects[key] = ref
        return ref

    def keys(self) -> list[str]:
        return sorted(self.objects)

    def check_access(self, prefix: str) -> None:
        if self.fail_access:
            raise RemoteStoreError("access denied")

    def list(self, prefix: str) -> list[RemoteObjectRef]:
        if self.fail_list:
            raise RemoteStoreError("list refused")
        return [obj for key, obj in self.objects.items() if key.startswith(prefix)]

    def put(
        self,
        local_path: Path,
        key: str,
        *,
        storage_class: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        if self.fail_put:
            raise RemoteStoreError("put refused")
        size = Path(local_path).stat().st_size
        self.puts.append(
            {"key": key, "size": size, "storage_class": storage_class, "metadata": dict(metadata or {})}
        )
        self.add(key, size, datetime.now(timezone.utc))

    def delete(self, key: str) -> None:
        if key in self.fail_delete:
            raise RemoteStoreError(f"delete of {key} refused")
        del self.objects[key]
        self.deleted.append(key)


class ScriptedDumper:
    """Dump producer that writes a sparse file of a fixed size, or fails."""

    def __init__(self, size_bytes: int = 1024, *, fail: bool = False, write: bool = True) -> None:
        self.size_bytes = size_bytes
        self.fail = fail
        self.write = write
        self.calls: list[Path] = []

    def dump(self, destination: Path) -> None:
        self.calls.append(destination)
        if self.write:
            with open(destination, "wb") as fh:
                fh.truncate(self.size_bytes)
        if self.fail:
            raise DumpFailedError("pg_dump failed with code 1: connection refused")


class FreeSpace:
    """Free-space probe returning scripted values, repeating the last one."""

    def __init__(self, *values: int) -> None:
        self._values = list(values)
        self.calls = 0

    def __call__(self, path: Path) -> int:
        index = min(self.calls, len(self._values) - 1)
        self.calls += 1
        return self._values[index]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "backups"
    path.mkdir()
    return path


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def make_config(work_dir: Path, log_dir: Path) -> Callable[..., BackupConfig]:
    """Factory fixture: build a BackupConfig with test defaults."""

    def _factory(**overrides: Any) -> BackupConfig:
        values: dict[str, Any] = {
            "pg_host": "db.test",
            "pg_port": 5432,
            "pg_database": "app",
            "pg_user": "backup",
            "pg_password": "secret",
            "aws_region": "us-east-1",
            "s3_bucket": "test-bucket",
            "s3_prefix": "postgres-backups",
            "backup_local_dir": work_dir,
            "log_dir": log_dir,
        }
        values.update(overrides)
        return BackupConfig(_env_file=None, **values)

    return _factory


@pytest.fixture
def config(make_config: Callable[..., BackupConfig]) -> BackupConfig:
    return make_config()


@pytest.fixture
def store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def seed_store() -> Callable[..., FakeRemoteStore]:
    """Factory fixture: a store pre-filled with backups, oldest first."""

    def _factory(sizes: Iterable[int], *, prefix: str = PREFIX) -> FakeRemoteStore:
        fake = FakeRemoteStore()
        for index, size in enumerate(sizes):
            fake.add(
                f"{prefix}app_2026-01-0{index + 1}_03-00-00.backup",
                size,
                BASE_TIME + timedelta(days=index),
            )
        return fake

    return _factory


@pytest.fixture
def plenty_of_space() -> FreeSpace:
    return FreeSpace(100 * GIB)


@pytest.fixture
def free_space() -> type[FreeSpace]:
    """Factory fixture: ``free_space(4 * GIB, 6 * GIB)`` scripts successive probes."""
    return FreeSpace


@pytest.fixture
def make_dumper() -> type[ScriptedDumper]:
    """Factory fixture: ``make_dumper(size_bytes, fail=..., write=...)``."""
    return ScriptedDumper


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo configure_logging so caplog sees records in later tests."""
    yield
    package_logger = logging.getLogger("pgvault")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
