from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from adapters.sql_renderer import normalize_engine

DatabaseType = Literal["mysql", "postgresql", "sqlite"]

NETWORKED_TYPES = {"mysql", "postgresql"}
DEFAULT_PORTS = {"mysql": 3306, "postgresql": 5432}


class ConnectionConfig(BaseModel):
    """Connection parameters for one database, validated and frozen on construction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: DatabaseType
    host: Optional[str] = Field(default=None, max_length=255)
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    user: Optional[str] = Field(default=None, max_length=128)
    password: Optional[str] = Field(default=None, repr=False)
    database: str = Field(..., min_length=1, max_length=128)
    filename: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def _default_port(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("port") in (None, ""):
            db_type = normalize_engine(str(data.get("type") or ""))
            if db_type in DEFAULT_PORTS:
                data = {**data, "port": DEFAULT_PORTS[db_type]}
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_engine(value)
        return value

    @model_validator(mode="after")
    def _check_required_for_type(self) -> "ConnectionConfig":
        if self.type in NETWORKED_TYPES:
            if not self.host:
                raise ValueError(f"host is required for {self.type}")
            if not self.user:
                raise ValueError(f"user is required for {self.type}")
        elif not self.filename:
            raise ValueError(f"filename is required for {self.type}")
        return self
