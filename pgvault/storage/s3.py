"""S3-compatible Remote Store backed by boto3.

Works against AWS S3 as well as MinIO or LocalStack through
``s3_endpoint_url``. When no explicit keys are configured the standard boto3
credential chain (environment, shared config, instance profile) applies.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from pgvault.config import BackupConfig
from pgvault.core.errors import RemoteStoreError
from pgvault.models.artifacts import RemoteObjectRef
from pgvault.storage.base import RemoteStore

logger = logging.getLogger(__name__)


class S3RemoteStore(RemoteStore):
    """Remote Store over a single S3 bucket.

    Parameters
    ----------
    bucket:
        Target bucket name.
    client:
        A boto3 S3 client. Use ``from_config`` to build one from settings.
    """

    def __init__(self, bucket: str, client: Any) -> None:
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_config(cls, config: BackupConfig) -> S3RemoteStore:
        """Create a store and its boto3 client from a BackupConfig."""
        client_kwargs: dict[str, Any] = {"region_name": config.aws_region}
        if config.s3_endpoint_url:
            client_kwargs["endpoint_url"] = config.s3_endpoint_url
        if config.aws_access_key_id and config.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = config.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = (
                config.aws_secret_access_key.get_secret_value()
            )
        return cls(config.s3_bucket, boto3.client("s3", **client_kwargs))

    def uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    # ------------------------------------------------------------------
    # RemoteStore interface
    # ------------------------------------------------------------------

    def check_access(self, prefix: str) -> None:
        """``head_bucket``: verifies credentials and bucket access in one call."""
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(
                f"Cannot access s3://{self.bucket}: {exc}"
            ) from exc
        logger.info("S3 bucket %s is reachable", self.bucket)

    def list(self, prefix: str) -> list[RemoteObjectRef]:
        objects: list[RemoteObjectRef] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    objects.append(
                        RemoteObjectRef(
                            key=item["Key"],
                            size_bytes=item["Size"],
                            last_modified=item["LastModified"],
                        )
                    )
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(
                f"Failed to list {self.uri(prefix)}: {exc}"
            ) from exc
        logger.debug("Listed %d object(s) under %s", len(objects), self.uri(prefix))
        return objects

    def put(
        self,
        local_path: Path,
        key: str,
        *,
        storage_class: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        extra_args: dict[str, Any] = {}
        if storage_class:
            extra_args["StorageClass"] = storage_class
        if metadata:
            extra_args["Metadata"] = dict(metadata)

        try:
            self._client.upload_file(
                str(local_path),
                self.bucket,
                key,
                ExtraArgs=extra_args or None,
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            raise RemoteStoreError(
                f"Failed to upload {local_path} to {self.uri(key)}: {exc}"
            ) from exc
        except OSError as exc:
            raise RemoteStoreError(f"Cannot read {local_path}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteStoreError(
                f"Failed to delete {self.uri(key)}: {exc}"
            ) from exc
