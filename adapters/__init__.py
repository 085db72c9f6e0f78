"""Database adapter layer: one connect/execute/introspect/close implementation per backend."""

from adapters.factory import SUPPORTED_TYPES, get_adapter

__all__ = ["SUPPORTED_TYPES", "get_adapter"]
