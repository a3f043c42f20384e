"""Backup pipeline core: admission, production, validation, rotation, orchestration."""
