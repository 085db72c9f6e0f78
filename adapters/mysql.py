from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List

import pymysql
import pymysql.cursors

from adapters.base import CONNECT_TIMEOUT_S, ColumnDescriptor, DatabaseAdapter, QueryResult, SchemaDocument
from adapters.errors import ConnectionFailureCause

if TYPE_CHECKING:
    from connections.config import ConnectionConfig

logger = logging.getLogger(__name__)

ER_ACCESS_DENIED_ERROR = 1045
ER_DBACCESS_DENIED_ERROR = 1044
ER_BAD_DB_ERROR = 1049


class MySQLAdapter(DatabaseAdapter):
    engine = "mysql"

    def _db_params(self, config: "ConnectionConfig") -> Dict[str, Any]:
        return {
            "host": config.host,
            "port": int(config.port or 3306),
            "user": config.user,
            "password": config.password or "",
            "database": config.database,
            "connect_timeout": CONNECT_TIMEOUT_S,
            "autocommit": True,
            "cursorclass": pymysql.cursors.DictCursor,
        }

    def connect(self, config: "ConnectionConfig") -> pymysql.connections.Connection:
        conn = pymysql.connect(**self._db_params(config))
        try:
            conn.ping(reconnect=False)
        except Exception:
            self.close(conn)
            raise
        return conn

    def execute(self, session: Any, sql: str) -> QueryResult:
        with session.cursor() as cur:
            cur.execute(sql)
            rows = cur.fetchall() or []
        return QueryResult(rows=[dict(row) for row in rows])

    def introspect_schema(self, session: Any) -> SchemaDocument:
        ph = self.dialect.param_placeholder
        schema: SchemaDocument = {}
        with session.cursor() as cur:
            cur.execute(
                """
                SELECT TABLE_NAME AS table_name
                FROM information_schema.TABLES
                WHERE TABLE_SCHEMA = DATABASE()
                  AND TABLE_TYPE = 'BASE TABLE'
                ORDER BY TABLE_NAME
                """
            )
            table_names = [row["table_name"] for row in cur.fetchall()]

            for table_name in table_names:
                cur.execute(
                    f"""
                    SELECT
                        COLUMN_NAME AS column_name,
                        DATA_TYPE AS data_type,
                        IS_NULLABLE AS is_nullable,
                        COLUMN_KEY AS column_key
                    FROM information_schema.COLUMNS
                    WHERE TABLE_SCHEMA = DATABASE()
                      AND TABLE_NAME = {ph}
                    ORDER BY ORDINAL_POSITION
                    """,
                    (table_name,),
                )
                columns: List[ColumnDescriptor] = []
                for row in cur.fetchall():
                    columns.append(
                        ColumnDescriptor(
                            name=row["column_name"],
                            data_type=row["data_type"],
                            nullable=str(row["is_nullable"]).upper() == "YES",
                            key_role=row["column_key"] or None,
                        )
                    )
                schema[table_name] = columns
        return schema

    def close(self, session: Any) -> None:
        try:
            session.close()
        except pymysql.err.Error as exc:
            logger.debug("MySQL session already closed: %s", exc)

    def classify_connect_error(self, exc: BaseException) -> ConnectionFailureCause:
        errno = exc.args[0] if isinstance(exc, pymysql.err.MySQLError) and exc.args else None
        if errno in (ER_ACCESS_DENIED_ERROR, ER_DBACCESS_DENIED_ERROR):
            return ConnectionFailureCause.ACCESS_DENIED
        if errno == ER_BAD_DB_ERROR:
            return ConnectionFailureCause.UNKNOWN_DATABASE
        return super().classify_connect_error(exc)
