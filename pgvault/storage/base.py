"""Remote Store interface and its recency access pattern.

The pipeline only ever needs three operations from the durable object
collection (prefix-scoped list, put, delete) plus one derived query: the
most recently modified object. Ordering is always ``(last_modified, key)``
ascending so that equal timestamps resolve deterministically.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Mapping
from pathlib import Path

from pgvault.models.artifacts import RemoteObjectRef


def sort_by_recency(objects: Iterable[RemoteObjectRef]) -> list[RemoteObjectRef]:
    """Oldest first; ties broken by lexical key order."""
    return sorted(objects, key=lambda obj: obj.sort_key)


def newest(objects: Iterable[RemoteObjectRef]) -> RemoteObjectRef | None:
    """Return the most recently modified object, or None for an empty listing."""
    ordered = sort_by_recency(objects)
    return ordered[-1] if ordered else None


class RemoteStore(abc.ABC):
    """Durable object collection holding the retained backups.

    Implementations raise ``RemoteStoreError`` for every failed call and must
    report last-modified timestamps with at least second granularity.
    """

    @abc.abstractmethod
    def list(self, prefix: str) -> list[RemoteObjectRef]:
        """Return every object whose key starts with *prefix*."""
        ...

    @abc.abstractmethod
    def put(
        self,
        local_path: Path,
        key: str,
        *,
        storage_class: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        """Upload *local_path* under *key* with an optional storage-class hint."""
        ...

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove the object stored under *key*."""
        ...

    def check_access(self, prefix: str) -> None:
        """Confirm the store is reachable with the current credentials.

        The default performs a prefix listing; backends with a cheaper probe
        override it. Raises ``RemoteStoreError``.
        """
        self.list(prefix)

    def last_object(self, prefix: str) -> RemoteObjectRef | None:
        """Most recently modified object under *prefix* (None if empty)."""
        return newest(self.list(prefix))

    def last_object_size(self, prefix: str) -> int:
        """Size of the newest object under *prefix*, 0 when there is none."""
        last = self.last_object(prefix)
        return last.size_bytes if last is not None else 0
