"""Process-wide keyed stores for UI snapshots and pending client requests.

Both stores sit on a ``KeyValueStore`` so tests can hand each case a fresh
instance. The in-memory backing only works for a single server process; a
multi-instance deployment needs a shared external store behind the same
interface.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

from wavepulse.models.domain import PendingRequest, UISnapshot
from wavepulse.protocols.store import KeyValueStore


class InMemoryStore:
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class SnapshotStore:
    """Latest UI snapshot per channel. Last writer wins, no versioning."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store or InMemoryStore()

    def get(self, channel_id: str) -> UISnapshot | None:
        return self._store.get(channel_id)

    def put(self, snapshot: UISnapshot) -> None:
        snapshot.updated_at = time.time()
        self._store.set(snapshot.channel_id, snapshot)

    def update(self, channel_id: str, **fields: Any) -> UISnapshot:
        snapshot = self.get(channel_id) or UISnapshot(channel_id=channel_id)
        for name, value in fields.items():
            setattr(snapshot, name, value)
        self.put(snapshot)
        return snapshot


class PendingRequestStore:
    """Requests waiting for a connected client to complete them, keyed by request id."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store or InMemoryStore()

    def submit(self, request: PendingRequest) -> None:
        self._store.set(request.request_id, request)

    def get(self, request_id: str) -> PendingRequest | None:
        return self._store.get(request_id)

    def complete(self, request_id: str, result: Any = None, error: str | None = None) -> bool:
        request = self.get(request_id)
        if request is None:
            return False
        request.result = result
        request.error = error
        request.completed = True
        self._store.set(request_id, request)
        return True

    def purge(self, request_id: str) -> None:
        self._store.delete(request_id)

    def pending_for(self, channel_id: str) -> list[PendingRequest]:
        pending = []
        for key in self._store.keys():
            request = self._store.get(key)
            if request is not None and request.channel_id == channel_id and not request.completed:
                pending.append(request)
        return sorted(pending, key=lambda r: r.created_at)
