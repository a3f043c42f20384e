"""Backup artifact models: the local dump file and its remote projection."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class BackupArtifact(BaseModel):
    """A dump file produced on local disk during a single run.

    Created by the BackupProducer, owned by the Orchestrator, and deleted
    from local storage on every terminal path of the run.
    """

    model_config = ConfigDict(frozen=True)

    name: str  # "<database>_<YYYY-MM-DD_HH-MM-SS>.backup"
    local_path: Path
    size_bytes: int = Field(ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class RemoteObjectRef(BaseModel):
    """Read-only snapshot of one object returned by a Remote Store listing.

    Never cached beyond a single pipeline run.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    size_bytes: int = Field(ge=0)
    last_modified: datetime

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Recency ordering with lexical key tie-break."""
        return (self.last_modified, self.key)
