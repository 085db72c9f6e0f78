from __future__ import annotations

from enum import Enum


class ConnectorError(RuntimeError):
    code = "connector_error"
    status_code = 500


class UnsupportedTypeError(ConnectorError):
    code = "unsupported_type"
    status_code = 400


class ConnectionFailureCause(str, Enum):
    REFUSED = "refused"
    HOST_NOT_FOUND = "host_not_found"
    ACCESS_DENIED = "access_denied"
    UNKNOWN_DATABASE = "unknown_database"
    GENERIC = "generic"


_CAUSE_MESSAGES = {
    ConnectionFailureCause.REFUSED: "Connection refused - Check if database server is running",
    ConnectionFailureCause.HOST_NOT_FOUND: "Host not found - Check database host address",
    ConnectionFailureCause.ACCESS_DENIED: "Access denied - Check username and password",
    ConnectionFailureCause.UNKNOWN_DATABASE: "Database does not exist",
}


class DatabaseConnectionError(ConnectorError):
    code = "connection_failed"
    status_code = 500

    def __init__(self, cause: ConnectionFailureCause, detail: str = ""):
        self.cause = cause
        self.detail = detail
        message = _CAUSE_MESSAGES.get(cause) or f"Database connection failed: {detail}"
        super().__init__(message)


class ConnectionNotFoundError(ConnectorError):
    code = "connection_not_found"
    status_code = 400

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__("Invalid connection ID")


class QueryError(ConnectorError):
    code = "query_failed"
    status_code = 500


class SchemaError(ConnectorError):
    code = "schema_failed"
    status_code = 500
