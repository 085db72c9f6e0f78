from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List

import psycopg
from psycopg_pool import ConnectionPool

from adapters.base import CONNECT_TIMEOUT_S, ColumnDescriptor, DatabaseAdapter, QueryResult, SchemaDocument

if TYPE_CHECKING:
    from connections.config import ConnectionConfig

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

_KEY_ROLES = {"PRIMARY KEY": "PRI", "UNIQUE": "UNI"}


class PostgresAdapter(DatabaseAdapter):
    engine = "postgresql"

    def _db_params(self, config: "ConnectionConfig") -> Dict[str, Any]:
        return {
            "host": config.host,
            "port": int(config.port or 5432),
            "dbname": config.database,
            "user": config.user,
            "password": config.password or "",
            "connect_timeout": CONNECT_TIMEOUT_S,
        }

    def connect(self, config: "ConnectionConfig") -> ConnectionPool:
        params = self._db_params(config)
        # Probe directly: the pool retries in the background and would hide the driver error.
        probe = psycopg.connect(**params)
        probe.close()

        pool = ConnectionPool(
            kwargs={**params, "autocommit": True},
            min_size=1,
            max_size=1,
            timeout=CONNECT_TIMEOUT_S,
            max_idle=CONNECT_TIMEOUT_S,
            name=f"{config.database}@{config.host}",
            open=False,
        )
        try:
            pool.open(wait=True, timeout=CONNECT_TIMEOUT_S)
        except Exception:
            pool.close()
            raise
        return pool

    def execute(self, session: Any, sql: str) -> QueryResult:
        with session.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                if cur.description is None:
                    return QueryResult(rows=[])
                columns = [desc[0] for desc in cur.description]
                rows = cur.fetchall()
        return QueryResult(rows=[{columns[i]: row[i] for i in range(len(columns))} for row in rows])

    def introspect_schema(self, session: Any) -> SchemaDocument:
        ph = self.dialect.param_placeholder
        schema: SchemaDocument = {}
        with session.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT table_name
                    FROM information_schema.tables
                    WHERE table_schema = {ph}
                      AND table_type = 'BASE TABLE'
                    ORDER BY table_name
                    """,
                    (DEFAULT_SCHEMA,),
                )
                table_names = [row[0] for row in cur.fetchall()]

                for table_name in table_names:
                    cur.execute(
                        f"""
                        SELECT
                            c.column_name,
                            c.data_type,
                            c.is_nullable,
                            (
                                SELECT tc.constraint_type
                                FROM information_schema.table_constraints tc
                                JOIN information_schema.key_column_usage kcu
                                  ON tc.constraint_name = kcu.constraint_name
                                 AND tc.table_schema = kcu.table_schema
                                WHERE tc.table_schema = c.table_schema
                                  AND tc.table_name = c.table_name
                                  AND kcu.column_name = c.column_name
                                  AND tc.constraint_type IN ('PRIMARY KEY', 'UNIQUE')
                                ORDER BY tc.constraint_type
                                LIMIT 1
                            ) AS constraint_type
                        FROM information_schema.columns c
                        WHERE c.table_schema = {ph}
                          AND c.table_name = {ph}
                        ORDER BY c.ordinal_position
                        """,
                        (DEFAULT_SCHEMA, table_name),
                    )
                    columns: List[ColumnDescriptor] = []
                    for column_name, data_type, is_nullable, constraint_type in cur.fetchall():
                        columns.append(
                            ColumnDescriptor(
                                name=column_name,
                                data_type=data_type,
                                nullable=is_nullable == "YES",
                                key_role=_KEY_ROLES.get(constraint_type),
                            )
                        )
                    schema[table_name] = columns
        return schema

    def close(self, session: Any) -> None:
        try:
            session.close()
        except psycopg.Error as exc:
            logger.debug("PostgreSQL pool close failed: %s", exc)
