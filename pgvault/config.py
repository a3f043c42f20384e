"""Backup configuration: env-driven, immutable for the lifetime of a run.

Settings are read once, from environment variables and a ``.env`` file, into
a frozen ``BackupConfig`` that is passed explicitly to the Orchestrator.
Stage logic never looks configuration up on its own.

Field names match the classic ``.env`` keys case-insensitively::

    PG_HOST=db.internal
    PG_PORT=5432
    PG_DATABASE=app
    PG_USER=backup
    PGPASSWORD=secret
    AWS_REGION=eu-west-1
    S3_BUCKET=acme-backups
    BACKUP_LOCAL_DIR=/tmp/pg-backups
    LOG_DIR=/var/log/pg-backup
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgvault.core.errors import ConfigurationError
from pgvault.core.units import GIB

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BackupConfig(BaseSettings):
    """All options consumed by a single backup run.

    Parameters without defaults are required; a run never starts without
    them (see ``load_config``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # PostgreSQL connection (Dump Producer)
    pg_host: str
    pg_port: int = 5432
    pg_database: str
    pg_user: str
    pg_password: SecretStr = Field(
        validation_alias=AliasChoices("pgpassword", "pg_password"),
    )
    pg_dump_path: str = "pg_dump"

    # Remote Store (S3)
    aws_region: str
    s3_bucket: str
    s3_prefix: str = "postgres-backups"
    s3_endpoint_url: str | None = None  # MinIO / LocalStack
    aws_access_key_id: str | None = None  # falls back to the boto3 chain
    aws_secret_access_key: SecretStr | None = None
    storage_class: str = "STANDARD_IA"

    # Local paths
    backup_local_dir: Path
    log_dir: Path

    # Validation, admission and retention policy
    min_size_percentage: int = Field(default=50, ge=0, le=100)
    min_free_space_bytes: int | None = Field(default=None, ge=0)
    min_free_space_gb: int = Field(default=5, ge=0)  # used when bytes unset
    space_multiplier: int = Field(default=3, ge=1)
    keep_count: int = Field(default=2, ge=1)
    log_retention_days: int = Field(default=30, ge=0)

    # Observability
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @property
    def minimum_free_bytes(self) -> int:
        """Absolute free-space floor in bytes."""
        if self.min_free_space_bytes is not None:
            return self.min_free_space_bytes
        return self.min_free_space_gb * GIB

    @property
    def remote_prefix(self) -> str:
        """Prefix with exactly one trailing slash, as used for listings."""
        return self.s3_prefix.strip("/") + "/"


def load_config(env_file: Path | None = None, **overrides: object) -> BackupConfig:
    """Build a BackupConfig, turning validation failures into ConfigurationError.

    ``env_file`` replaces the default ``.env`` lookup; ``overrides`` take
    precedence over both the environment and the file.
    """
    try:
        if env_file is not None:
            if not env_file.is_file():
                raise ConfigurationError(f".env file not found at {env_file}")
            return BackupConfig(_env_file=env_file, **overrides)
        return BackupConfig(**overrides)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                problems.append(f"{field.upper()} is not set")
            else:
                problems.append(f"{field.upper()}: {error['msg']}")
        raise ConfigurationError(
            "Invalid backup configuration: " + "; ".join(problems)
        ) from exc
