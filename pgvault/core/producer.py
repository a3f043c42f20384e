"""Backup Producer: wraps the external dump tool and checks its output.

The dump tool is pluggable through the ``DumpProducer`` Protocol. Whatever
the tool claims, the BackupProducer only hands out an artifact whose file
exists and is non-empty.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from pgvault.config import BackupConfig
from pgvault.core.cleanup import emergency_cleanup, remove_file
from pgvault.core.errors import DumpFailedError, EmptyArtifactError, PrerequisiteError
from pgvault.core.units import format_bytes
from pgvault.models.artifacts import BackupArtifact
from pgvault.models.results import DeleteOutcome

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DumpProducer(Protocol):
    """Anything that writes a single opaque dump file to a path.

    Implementations raise ``DumpFailedError`` when the dump fails. The
    artifact is treated as already compressed and is never parsed.
    """

    def dump(self, destination: Path) -> None:
        ...


@runtime_checkable
class SupportsPreflight(Protocol):
    """A dump tool that can confirm it is installed before any work starts."""

    def check_available(self) -> None:
        ...


# ---------------------------------------------------------------------------
# pg_dump
# ---------------------------------------------------------------------------


class PgDumpProducer:
    """Runs ``pg_dump`` in custom format (compressed, with large objects).

    The password is handed to the child through ``PGPASSWORD`` only; it never
    appears on the command line. pg_dump's verbose stderr goes to the run
    log at INFO.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        database: str,
        password: str,
        *,
        pg_dump_path: str = "pg_dump",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.database = database
        self._password = password
        self.pg_dump_path = pg_dump_path

    @classmethod
    def from_config(cls, config: BackupConfig) -> PgDumpProducer:
        return cls(
            host=config.pg_host,
            port=config.pg_port,
            user=config.pg_user,
            database=config.pg_database,
            password=config.pg_password.get_secret_value(),
            pg_dump_path=config.pg_dump_path,
        )

    def check_available(self) -> None:
        """Raise PrerequisiteError unless the pg_dump binary can be found."""
        resolved = shutil.which(self.pg_dump_path)
        if resolved is None:
            raise PrerequisiteError(
                f"pg_dump is not installed or not in PATH ({self.pg_dump_path})"
            )
        logger.info("pg_dump found: %s", resolved)

    def command(self, destination: Path) -> list[str]:
        return [
            self.pg_dump_path,
            "-h", self.host,
            "-p", str(self.port),
            "-U", self.user,
            "-d", self.database,
            "-F", "c",
            "-b",
            "-v",
            "-f", str(destination),
        ]

    def dump(self, destination: Path) -> None:
        env = {**os.environ, "PGPASSWORD": self._password}
        logger.info("Running pg_dump for database %s on %s:%s", self.database, self.host, self.port)
        try:
            proc = subprocess.run(
                self.command(destination),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise DumpFailedError(
                f"pg_dump is not installed or not in PATH ({self.pg_dump_path})"
            ) from exc
        except OSError as exc:
            raise DumpFailedError(f"Could not start pg_dump: {exc}") from exc

        for line in proc.stderr.splitlines():
            if line.strip():
                logger.info("%s", line)

        if proc.returncode != 0:
            tail = proc.stderr.strip().splitlines()[-1:] or ["no error output"]
            raise DumpFailedError(
                f"pg_dump failed with code {proc.returncode}: {tail[0]}"
            )


# ---------------------------------------------------------------------------
# BackupProducer
# ---------------------------------------------------------------------------


class BackupProducer:
    """Produces a verified BackupArtifact in the working directory.

    Parameters
    ----------
    dumper:
        The external dump tool.
    work_dir:
        Directory swept by emergency cleanup after a failed dump.
    cleanup:
        Emergency cleanup callable, overridable for tests.
    """

    def __init__(
        self,
        dumper: DumpProducer,
        work_dir: Path,
        *,
        cleanup: Callable[[Path], DeleteOutcome] = emergency_cleanup,
    ) -> None:
        self._dumper = dumper
        self._work_dir = work_dir
        self._cleanup = cleanup

    def produce(self, name: str, destination: Path | None = None) -> BackupArtifact:
        """Dump to *destination* (default ``work_dir/name``) and verify it.

        Raises
        ------
        DumpFailedError
            The tool failed. The partial file is removed and the working
            directory swept for orphaned segments.
        EmptyArtifactError
            The tool succeeded but the file is missing or empty.
        """
        destination = destination or self._work_dir / name
        destination.parent.mkdir(parents=True, exist_ok=True)
        created_at = datetime.now(timezone.utc)

        logger.info("Backup file: %s", destination)
        try:
            self._dumper.dump(destination)
        except DumpFailedError as exc:
            logger.error("Dump failed: %s", exc)
            remove_file(destination)
            self._cleanup(self._work_dir)
            raise

        if not destination.is_file():
            raise EmptyArtifactError(f"Backup file {destination} was not created")

        size = destination.stat().st_size
        if size == 0:
            remove_file(destination)
            raise EmptyArtifactError(f"Backup file {destination} is empty")

        logger.info("Backup created successfully (%s)", format_bytes(size))
        return BackupArtifact(
            name=name,
            local_path=destination,
            size_bytes=size,
            created_at=created_at,
        )
