import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routes import router
from api.security import setup_security
from connections.registry import ConnectionRegistry
from connections.service import ConnectionService
from utils.env_loader import load_environments
from utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid request"))
    return f"{location}: {message}" if location else message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": _validation_message(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.connection_service.shutdown()


def create_app() -> FastAPI:
    load_environments()
    configure_logging()

    app = FastAPI(
        title="QueryMind AI API",
        version="0.1.0",
        description="Natural-language to SQL translation and ad-hoc query execution over MySQL and PostgreSQL",
        lifespan=lifespan,
    )
    app.state.connection_service = ConnectionService(ConnectionRegistry())
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    setup_security(app)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "5000"))
    logger.info("QueryMind AI backend starting on port %d", port)
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port)
