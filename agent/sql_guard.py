import re

from utils.env_loader import env_flag, load_environments


class UnsafeSQLError(ValueError):
    pass


_DENYLIST = (
    "drop",
    "delete",
    "truncate",
    "alter",
    "create",
    "insert",
    "update",
    "grant",
    "revoke",
)


def _normalize_sql(sql: str) -> str:
    return re.sub(r"\s+", " ", sql.strip()).lower()


def guard_enabled() -> bool:
    load_environments()
    return env_flag("SQL_GUARD_ENABLED", "1")


def validate_sql(sql: str) -> str:
    candidate = (sql or "").strip()
    if not candidate:
        raise UnsafeSQLError("SQL is empty")

    semicolons = candidate.count(";")
    if semicolons > 1:
        raise UnsafeSQLError("Multiple SQL statements are not allowed")
    if semicolons == 1 and not candidate.endswith(";"):
        raise UnsafeSQLError("Semicolon is only allowed at the end of SQL")

    normalized = _normalize_sql(candidate.rstrip(";"))
    for keyword in _DENYLIST:
        if re.search(rf"\b{keyword}\b", normalized):
            raise UnsafeSQLError(f"Potentially dangerous SQL operation detected: {keyword.upper()}")

    return candidate.rstrip(";")
