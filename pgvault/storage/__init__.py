"""Remote Store implementations used for durable offsite retention."""

from pgvault.storage.base import RemoteStore, newest, sort_by_recency

__all__ = ["RemoteStore", "newest", "sort_by_recency"]
