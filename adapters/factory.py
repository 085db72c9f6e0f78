from __future__ import annotations

from typing import Dict, Type

from adapters.base import DatabaseAdapter
from adapters.errors import UnsupportedTypeError
from adapters.mysql import MySQLAdapter
from adapters.postgres import PostgresAdapter
from adapters.sql_renderer import normalize_engine
from adapters.sqlite import SQLiteAdapter

_ADAPTER_CLASSES: Dict[str, Type[DatabaseAdapter]] = {
    "mysql": MySQLAdapter,
    "postgresql": PostgresAdapter,
    "sqlite": SQLiteAdapter,
}

SUPPORTED_TYPES = tuple(_ADAPTER_CLASSES)

_instances: Dict[str, DatabaseAdapter] = {}


def get_adapter(db_type: str) -> DatabaseAdapter:
    engine = normalize_engine(db_type)
    adapter_cls = _ADAPTER_CLASSES.get(engine)
    if adapter_cls is None:
        raise UnsupportedTypeError(f"Unsupported database type: {db_type}")
    if engine not in _instances:
        _instances[engine] = adapter_cls()
    return _instances[engine]
