"""Concurrency-safe handle registry for keys and ciphertexts."""

import threading
import uuid
from typing import Any, Dict, List, Type, TypeVar

from .errors import NotFoundError

T = TypeVar("T")

DEFAULT_SHARD_COUNT = 16


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self):
        self.lock = threading.Lock()
        self.entries: Dict[str, Any] = {}


class HandleRegistry:
    """
    Maps opaque handles to immutable cryptographic objects.

    The registry is constructed once per service and passed to every component
    that needs it. Entries are never removed or replaced: a handle, once
    inserted, resolves to the same object for the life of the process.

    The backing map is split into shards. Inserts lock only the shard that owns
    the handle; lookups never lock, since a dict read in CPython observes either
    the complete entry or no entry at all.

    Usage:
        registry = HandleRegistry()
        handle = registry.register(server_key)
        key = registry.resolve(handle, ServerKey, "Server key")
    """

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT):
        if shard_count < 1:
            raise ValueError(f"shard_count must be positive, got {shard_count}")
        self._shards: List[_Shard] = [_Shard() for _ in range(shard_count)]

    @property
    def shard_count(self) -> int:
        return len(self._shards)

    def _shard_for(self, handle: str) -> _Shard:
        return self._shards[hash(handle) % len(self._shards)]

    def mint(self) -> str:
        """Return a fresh handle that has never been issued."""
        return str(uuid.uuid4())

    def insert(self, handle: str, obj: Any) -> None:
        """
        Publish obj under handle.

        Raises:
            ValueError: if the handle is already occupied. Handles are minted
                internally, so this indicates a programming error.
        """
        shard = self._shard_for(handle)
        with shard.lock:
            if handle in shard.entries:
                raise ValueError(f"Handle already registered: {handle}")
            shard.entries[handle] = obj

    def register(self, obj: Any) -> str:
        """Mint a handle, insert obj under it and return the handle."""
        handle = self.mint()
        self.insert(handle, obj)
        return handle

    def get(self, handle: str, kind: str = "Object") -> Any:
        """
        Return the object stored under handle.

        Raises:
            NotFoundError: if the handle was never minted or never inserted
        """
        if not isinstance(handle, str):
            raise NotFoundError(kind, str(handle))
        obj = self._shard_for(handle).entries.get(handle)
        if obj is None:
            raise NotFoundError(kind, handle)
        return obj

    def resolve(self, handle: str, expected_type: Type[T], kind: str) -> T:
        """
        Typed lookup.

        A handle that exists but stores a different type of object is reported
        as not found for the requested kind, e.g. a ciphertext handle passed
        where a client key is expected.
        """
        obj = self.get(handle, kind)
        if not isinstance(obj, expected_type):
            raise NotFoundError(kind, handle)
        return obj

    def __contains__(self, handle: object) -> bool:
        if not isinstance(handle, str):
            return False
        return handle in self._shard_for(handle).entries

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def __repr__(self) -> str:
        return f"HandleRegistry(entries={len(self)}, shards={len(self._shards)})"
