from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from adapters.base import schema_to_dict
from adapters.errors import ConnectorError
from agent.sql_guard import UnsafeSQLError, guard_enabled, validate_sql
from agent.sql_llm_generator import LLMServiceError, optimize_sql, suggest_improvements, translate_to_sql
from api.schemas import (
    ConnectionRef,
    ConnectResponse,
    ConvertRequest,
    ConvertResponse,
    DisconnectResponse,
    ExecuteRequest,
    ExecuteResponse,
    OptimizeRequest,
    OptimizeResponse,
    SchemaResponse,
    SuggestionsRequest,
    SuggestionsResponse,
)
from api.security import limiter, query_rate_limit
from connections.config import ConnectionConfig
from connections.service import ConnectionService

router = APIRouter(prefix="/api")


def get_connection_service(request: Request) -> ConnectionService:
    return request.app.state.connection_service


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.post("/database/connect", response_model=ConnectResponse)
def database_connect(
    config: ConnectionConfig,
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectResponse:
    try:
        connection_id = service.connect(config)
    except ConnectorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return ConnectResponse(data={"connection_id": connection_id})


@router.post("/database/execute", response_model=ExecuteResponse)
def database_execute(
    payload: ExecuteRequest,
    service: ConnectionService = Depends(get_connection_service),
) -> ExecuteResponse:
    try:
        sql = validate_sql(payload.query) if guard_enabled() else payload.query
        result = service.execute_query(payload.connection_id, sql)
    except UnsafeSQLError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConnectorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return ExecuteResponse(data=result.to_dict())


@router.post("/database/disconnect", response_model=DisconnectResponse)
def database_disconnect(
    payload: ConnectionRef,
    service: ConnectionService = Depends(get_connection_service),
) -> DisconnectResponse:
    service.disconnect(payload.connection_id)
    return DisconnectResponse()


@router.post("/schema/analyze", response_model=SchemaResponse)
def schema_analyze(
    payload: ConnectionRef,
    service: ConnectionService = Depends(get_connection_service),
) -> SchemaResponse:
    try:
        schema = service.get_schema(payload.connection_id)
    except ConnectorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return SchemaResponse(data={"schema": schema_to_dict(schema)})


@router.post("/query/convert", response_model=ConvertResponse)
@limiter.limit(query_rate_limit)
def query_convert(request: Request, payload: ConvertRequest) -> ConvertResponse:
    try:
        sql_query = translate_to_sql(
            payload.natural_language,
            payload.schema_,
            payload.db_type,
            payload.language,
        )
    except LLMServiceError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to convert query: {exc}") from exc
    return ConvertResponse(
        data={
            "sql_query": sql_query,
            "natural_language": payload.natural_language,
            "timestamp": _now(),
        }
    )


@router.post("/query/optimize", response_model=OptimizeResponse)
@limiter.limit(query_rate_limit)
def query_optimize(request: Request, payload: OptimizeRequest) -> OptimizeResponse:
    try:
        optimization = optimize_sql(payload.sql_query, payload.db_type)
    except LLMServiceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return OptimizeResponse(data=optimization)


@router.post("/query/suggestions", response_model=SuggestionsResponse)
@limiter.limit(query_rate_limit)
def query_suggestions(request: Request, payload: SuggestionsRequest) -> SuggestionsResponse:
    try:
        suggestions = suggest_improvements(payload.sql_query, payload.schema_, payload.db_type)
    except LLMServiceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return SuggestionsResponse(data={"suggestions": suggestions})
