"""pgvault: guarded PostgreSQL backups to S3 with size validation and rotation.

One invocation performs one backup run:
  - Disk-space admission control sized from the previous backup
  - pg_dump in custom (compressed) format, verified non-empty
  - Size validation against the newest remote backup
  - Upload to S3 with storage-class and metadata
  - Fixed-count retention rotation, then local cleanup
"""

__version__ = "0.1.0"

from pgvault.config import BackupConfig, load_config
from pgvault.core.orchestrator import Orchestrator, run_backup

__all__ = ["BackupConfig", "Orchestrator", "load_config", "run_backup", "__version__"]
