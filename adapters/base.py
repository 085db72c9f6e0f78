from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic_core import to_jsonable_python

from adapters.errors import ConnectionFailureCause
from adapters.sql_renderer import SQLDialect, get_sql_dialect

if TYPE_CHECKING:
    from connections.config import ConnectionConfig


CONNECT_TIMEOUT_S = 10


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    data_type: str
    nullable: bool
    key_role: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SchemaDocument = Dict[str, List[ColumnDescriptor]]


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        # Binary cells become base64 text; driver types JSON has no form for fall back to str().
        rows = to_jsonable_python(self.rows, bytes_mode="base64", fallback=str)
        return {"rows": rows, "row_count": self.row_count}


def schema_to_dict(schema: SchemaDocument) -> Dict[str, List[Dict[str, Any]]]:
    return {table: [col.to_dict() for col in columns] for table, columns in schema.items()}


def _message_cause(text: str) -> ConnectionFailureCause:
    lowered = text.lower()
    if "refused" in lowered:
        return ConnectionFailureCause.REFUSED
    if any(
        tok in lowered
        for tok in ("name or service not known", "nodename nor servname", "getaddrinfo", "could not translate host name")
    ):
        return ConnectionFailureCause.HOST_NOT_FOUND
    if "access denied" in lowered or "authentication failed" in lowered:
        return ConnectionFailureCause.ACCESS_DENIED
    if "unknown database" in lowered or ("database" in lowered and "does not exist" in lowered):
        return ConnectionFailureCause.UNKNOWN_DATABASE
    return ConnectionFailureCause.GENERIC


class DatabaseAdapter(ABC):
    """Uniform connect/execute/introspect/close capability over one database technology.

    Adapters are stateless: the native session returned by ``connect`` is passed back
    into every other call, and the registry owns its lifetime.
    """

    engine: str = "unknown"

    @property
    def dialect(self) -> SQLDialect:
        return get_sql_dialect(self.engine)

    @abstractmethod
    def connect(self, config: "ConnectionConfig") -> Any:
        raise NotImplementedError

    @abstractmethod
    def execute(self, session: Any, sql: str) -> QueryResult:
        raise NotImplementedError

    @abstractmethod
    def introspect_schema(self, session: Any) -> SchemaDocument:
        raise NotImplementedError

    @abstractmethod
    def close(self, session: Any) -> None:
        raise NotImplementedError

    def classify_connect_error(self, exc: BaseException) -> ConnectionFailureCause:
        if isinstance(exc, ConnectionRefusedError):
            return ConnectionFailureCause.REFUSED
        return _message_cause(str(exc))
