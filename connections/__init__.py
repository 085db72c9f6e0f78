"""Connection lifecycle: config validation, the handle registry and the query/schema gateways."""

from connections.config import ConnectionConfig
from connections.registry import ConnectionRegistry, ManagedConnection
from connections.service import ConnectionService

__all__ = ["ConnectionConfig", "ConnectionRegistry", "ConnectionService", "ManagedConnection"]
