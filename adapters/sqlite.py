from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

from adapters.base import DatabaseAdapter, QueryResult, SchemaDocument
from adapters.errors import UnsupportedTypeError

if TYPE_CHECKING:
    from connections.config import ConnectionConfig


class SQLiteAdapter(DatabaseAdapter):
    """Reserved file backend. Accepted by the config surface, rejected on every operation."""

    engine = "sqlite"

    def _disabled(self) -> NoReturn:
        raise UnsupportedTypeError("SQLite support is currently disabled")

    def connect(self, config: "ConnectionConfig") -> Any:
        self._disabled()

    def execute(self, session: Any, sql: str) -> QueryResult:
        self._disabled()

    def introspect_schema(self, session: Any) -> SchemaDocument:
        self._disabled()

    def close(self, session: Any) -> None:
        self._disabled()
