from __future__ import annotations

from dataclasses import dataclass

from adapters.errors import UnsupportedTypeError


@dataclass(frozen=True)
class SQLDialect:
    engine: str
    display_name: str
    param_placeholder: str


_DIALECTS = {
    "mysql": SQLDialect(engine="mysql", display_name="MySQL", param_placeholder="%s"),
    "postgresql": SQLDialect(engine="postgresql", display_name="PostgreSQL", param_placeholder="%s"),
    "sqlite": SQLDialect(engine="sqlite", display_name="SQLite", param_placeholder="?"),
}


def normalize_engine(db_type: str) -> str:
    engine = (db_type or "").strip().lower()
    if engine == "postgres":
        return "postgresql"
    return engine


def get_sql_dialect(db_type: str) -> SQLDialect:
    dialect = _DIALECTS.get(normalize_engine(db_type))
    if dialect is None:
        raise UnsupportedTypeError(f"Unsupported database type: {db_type}")
    return dialect
