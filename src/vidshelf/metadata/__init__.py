"""Metadata resolution: canonical records, the local store, providers and the resolver."""

from vidshelf.metadata.resolver import MetadataResolver, SessionCache
from vidshelf.metadata.store import MetadataStore

__all__ = ["MetadataResolver", "MetadataStore", "SessionCache"]
