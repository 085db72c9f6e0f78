from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from adapters.base import DatabaseAdapter
from adapters.errors import ConnectionNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManagedConnection:
    handle: str
    db_type: str
    adapter: DatabaseAdapter
    session: Any = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # Serializes use of the native session, which is not safe for concurrent statements.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


def mint_handle(db_type: str) -> str:
    return f"{db_type}_{uuid4().hex}"


class ConnectionRegistry:
    """Maps opaque connection handles to live sessions.

    The internal lock only guards whole-entry insert/delete/lookup; it is never held
    across driver I/O. Closing a session happens after the entry is removed, under that
    connection's own lock, so an in-flight statement finishes before the session goes away.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, ManagedConnection] = {}
        self._lock = threading.Lock()

    def register(self, adapter: DatabaseAdapter, session: Any) -> str:
        with self._lock:
            handle = mint_handle(adapter.engine)
            while handle in self._entries:
                handle = mint_handle(adapter.engine)
            self._entries[handle] = ManagedConnection(
                handle=handle,
                db_type=adapter.engine,
                adapter=adapter,
                session=session,
            )
        return handle

    def lookup(self, handle: str) -> ManagedConnection:
        with self._lock:
            managed = self._entries.get(handle)
        if managed is None:
            raise ConnectionNotFoundError(handle)
        return managed

    def dispose(self, handle: str) -> bool:
        with self._lock:
            managed = self._entries.pop(handle, None)
        if managed is None:
            return False
        with managed.lock:
            managed.adapter.close(managed.session)
        age = (datetime.now(timezone.utc) - managed.created_at).total_seconds()
        logger.info("Closed %s connection %s after %.1fs", managed.db_type, handle, age)
        return True

    def close_all(self) -> int:
        closed = 0
        for handle in self.handles():
            try:
                if self.dispose(handle):
                    closed += 1
            except Exception:
                logger.exception("Failed to close connection %s during shutdown", handle)
        return closed

    def handles(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._entries
