from __future__ import annotations

import logging

from adapters.base import QueryResult, SchemaDocument
from adapters.errors import (
    ConnectorError,
    DatabaseConnectionError,
    QueryError,
    SchemaError,
)
from adapters.factory import get_adapter
from connections.config import ConnectionConfig
from connections.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ConnectionService:
    """Connect dispatcher plus the query and schema gateways over one registry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def connect(self, config: ConnectionConfig) -> str:
        adapter = get_adapter(config.type)
        try:
            session = adapter.connect(config)
        except ConnectorError:
            raise
        except Exception as exc:
            cause = adapter.classify_connect_error(exc)
            logger.warning(
                "Database connection failed (%s) for %s at %s:%s/%s: %s",
                cause.value,
                config.type,
                config.host,
                config.port,
                config.database,
                exc,
            )
            raise DatabaseConnectionError(cause, str(exc)) from exc

        handle = self.registry.register(adapter, session)
        logger.info("Opened %s connection %s to %s", config.type, handle, config.database)
        return handle

    def execute_query(self, handle: str, sql: str) -> QueryResult:
        managed = self.registry.lookup(handle)
        try:
            with managed.lock:
                return managed.adapter.execute(managed.session, sql)
        except ConnectorError:
            raise
        except Exception as exc:
            raise QueryError(f"Query execution failed: {exc}") from exc

    def get_schema(self, handle: str) -> SchemaDocument:
        managed = self.registry.lookup(handle)
        try:
            with managed.lock:
                return managed.adapter.introspect_schema(managed.session)
        except ConnectorError:
            raise
        except Exception as exc:
            raise SchemaError(f"Failed to fetch schema: {exc}") from exc

    def disconnect(self, handle: str) -> bool:
        return self.registry.dispose(handle)

    def shutdown(self) -> int:
        closed = self.registry.close_all()
        logger.info("Closed %d open connection(s) on shutdown", closed)
        return closed
