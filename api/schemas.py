from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, Field

from adapters.sql_renderer import normalize_engine
from connections.config import DatabaseType

DialectName = Annotated[DatabaseType, BeforeValidator(lambda v: normalize_engine(v) if isinstance(v, str) else v)]


class ConnectionRef(BaseModel):
    connection_id: str = Field(..., min_length=1, max_length=200)


class ExecuteRequest(ConnectionRef):
    query: str = Field(..., min_length=1, max_length=100_000)


class ConvertRequest(BaseModel):
    natural_language: str = Field(..., min_length=1, max_length=5000)
    schema_: Dict[str, Any] = Field(..., alias="schema")
    db_type: DialectName
    language: Optional[str] = Field(default="en", max_length=20)


class OptimizeRequest(BaseModel):
    sql_query: str = Field(..., min_length=1, max_length=100_000)
    db_type: DialectName


class SuggestionsRequest(OptimizeRequest):
    schema_: Dict[str, Any] = Field(..., alias="schema")


class ConnectData(BaseModel):
    connection_id: str


class ExecuteData(BaseModel):
    rows: List[Dict[str, Any]]
    row_count: int


class SchemaData(BaseModel):
    schema_: Dict[str, List[Dict[str, Any]]] = Field(..., alias="schema")


class ConvertData(BaseModel):
    sql_query: str
    natural_language: str
    timestamp: str


class OptimizeData(BaseModel):
    optimized_query: str
    improvements: List[str]
    estimated_gain: str


class SuggestionsData(BaseModel):
    suggestions: List[str]


class ConnectResponse(BaseModel):
    success: bool = True
    data: ConnectData


class ExecuteResponse(BaseModel):
    success: bool = True
    data: ExecuteData


class SchemaResponse(BaseModel):
    success: bool = True
    data: SchemaData


class ConvertResponse(BaseModel):
    success: bool = True
    data: ConvertData


class OptimizeResponse(BaseModel):
    success: bool = True
    data: OptimizeData


class SuggestionsResponse(BaseModel):
    success: bool = True
    data: SuggestionsData


class DisconnectResponse(BaseModel):
    success: bool = True
    message: str = "Disconnected successfully"
