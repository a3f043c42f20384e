"""Tests for BackupConfig: env-driven, immutable settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pgvault.config import BackupConfig, load_config
from pgvault.core.errors import ConfigurationError
from pgvault.core.units import GIB

REQUIRED_ENV = {
    "PG_HOST": "db.internal",
    "PG_DATABASE": "app",
    "PG_USER": "backup",
    "PGPASSWORD": "s3cret",
    "AWS_REGION": "eu-west-1",
    "S3_BUCKET": "acme-backups",
}


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    lines = [f"{key}={value}" for key, value in REQUIRED_ENV.items()]
    lines.append(f"BACKUP_LOCAL_DIR={tmp_path / 'backups'}")
    lines.append(f"LOG_DIR={tmp_path / 'logs'}")
    path = tmp_path / ".env"
    path.write_text("\n".join(lines) + "\n")
    return path


class TestBackupConfig:
    def test_defaults(self, config: BackupConfig):
        assert config.pg_port == 5432
        assert config.s3_prefix == "postgres-backups"
        assert config.min_size_percentage == 50
        assert config.space_multiplier == 3
        assert config.keep_count == 2
        assert config.log_retention_days == 30
        assert config.storage_class == "STANDARD_IA"

    def test_minimum_free_bytes_defaults_to_five_gib(self, config: BackupConfig):
        assert config.minimum_free_bytes == 5 * GIB

    def test_minimum_free_bytes_from_gb(self, make_config):
        assert make_config(min_free_space_gb=8).minimum_free_bytes == 8 * GIB

    def test_explicit_bytes_win_over_gb(self, make_config):
        config = make_config(min_free_space_gb=8, min_free_space_bytes=1234)
        assert config.minimum_free_bytes == 1234

    def test_remote_prefix_normalized(self, make_config):
        assert make_config(s3_prefix="/nightly/").remote_prefix == "nightly/"
        assert make_config(s3_prefix="nightly").remote_prefix == "nightly/"

    def test_password_is_secret(self, config: BackupConfig):
        assert "secret" not in repr(config)
        assert config.pg_password.get_secret_value() == "secret"

    def test_frozen(self, config: BackupConfig):
        with pytest.raises(ValidationError):
            config.keep_count = 5

    def test_keep_count_must_be_positive(self, make_config):
        with pytest.raises(ValidationError):
            make_config(keep_count=0)

    def test_percentage_bounded(self, make_config):
        with pytest.raises(ValidationError):
            make_config(min_size_percentage=150)

    def test_log_level_normalized(self, make_config):
        assert make_config(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, make_config):
        with pytest.raises(ValidationError, match="VERBOSE"):
            make_config(log_level="VERBOSE")


class TestLoadConfig:
    def test_reads_env_file(self, env_file: Path, monkeypatch):
        for key in REQUIRED_ENV:
            monkeypatch.delenv(key, raising=False)
        config = load_config(env_file)
        assert config.pg_host == "db.internal"
        assert config.pg_password.get_secret_value() == "s3cret"
        assert config.s3_bucket == "acme-backups"

    def test_overrides_take_precedence(self, env_file: Path):
        config = load_config(env_file, keep_count=7)
        assert config.keep_count == 7

    def test_missing_env_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.env")

    def test_missing_required_fields_named(self, tmp_path: Path, monkeypatch):
        for key in REQUIRED_ENV:
            monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv("BACKUP_LOCAL_DIR", raising=False)
        monkeypatch.delenv("LOG_DIR", raising=False)
        partial = tmp_path / "partial.env"
        partial.write_text("PG_HOST=db\n")
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(partial)
        message = str(excinfo.value)
        assert "PG_DATABASE is not set" in message
        assert "S3_BUCKET is not set" in message
        assert "PG_HOST" not in message

    def test_missing_password_named_by_documented_key(self, tmp_path: Path, monkeypatch):
        for key in REQUIRED_ENV:
            monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv("PG_PASSWORD", raising=False)
        env = tmp_path / "nopass.env"
        env.write_text(
            "\n".join(f"{k}={v}" for k, v in REQUIRED_ENV.items() if k != "PGPASSWORD")
            + f"\nBACKUP_LOCAL_DIR={tmp_path}\nLOG_DIR={tmp_path}\n"
        )
        with pytest.raises(ConfigurationError, match="PGPASSWORD is not set"):
            load_config(env)

    def test_unknown_log_level_is_configuration_error(self, env_file: Path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
            load_config(env_file, log_level="VERBOSE")
