# File: cqrsgen/app.py
"""
CQRSGen - HTTP Service
========================
FastAPI application exposing the generator::

    POST /api/generate     {"tableName", "namespace", "ignoreLastSChar"}
    GET  /api/connection   database connectivity probe

Status mapping for ``/api/generate``:

    200  {"schema", "generatedCode", "className"}
    400  {"message"}                      missing field or schema lookup failure
    500  {"message": "Internal server error", "error"}
         unexpected failure or malformed request body

The schema provider (and its connection pool) is created once per
application and disposed on shutdown.  Handlers are plain ``def`` so the
blocking database calls run in the threadpool.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import cqrsgen
from cqrsgen.config import Settings, get_settings
from cqrsgen.generator import CodeGenerator, GenerationReport
from cqrsgen.models import ConnectionResult, ErrorResponse, GenerateRequest, GenerateResponse
from cqrsgen.schema_provider import PostgresSchemaProvider, SchemaLookupError, SchemaProvider
from cqrsgen.validators import InputValidationError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.app")

INTERNAL_ERROR_MESSAGE: str = "Internal server error"


def _error_response(
    status_code: int, message: str, error: Optional[str] = None
) -> JSONResponse:
    body: Dict[str, Any] = ErrorResponse(message=message, error=error).model_dump(
        exclude_none=True
    )
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_schema_provider(request: Request) -> SchemaProvider:
    """The provider attached to the running application."""
    return request.app.state.schema_provider


def get_code_generator(
    provider: SchemaProvider = Depends(get_schema_provider),
) -> CodeGenerator:
    return CodeGenerator(provider)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[SchemaProvider] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        provider: Schema provider to serve from.  When omitted, a
            ``PostgresSchemaProvider`` is built from ``settings.database_url``.

    Raises:
        ValueError: If no provider is given and ``DATABASE_URL`` is unset.
    """
    settings = settings or get_settings()
    if provider is None:
        provider = PostgresSchemaProvider.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Serving with %s.", type(app.state.schema_provider).__name__)
        yield
        app.state.schema_provider.close()
        logger.info("Schema provider closed.")

    app: FastAPI = FastAPI(
        title="CQRSGen",
        version=cqrsgen.__version__,
        description="C# CQRS/Dapper boilerplate from PostgreSQL table metadata.",
        lifespan=lifespan,
    )
    app.state.schema_provider = provider
    app.state.settings = settings

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies get the same error shape as every other failure."""
        logger.warning("Rejected request body for %s: %s", request.url.path, exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, str(exc)
        )

    @app.post("/api/generate", response_model=GenerateResponse)
    def generate(
        payload: GenerateRequest,
        generator: CodeGenerator = Depends(get_code_generator),
    ) -> Union[GenerateResponse, JSONResponse]:
        """Generate the six C# artifacts for one table."""
        try:
            report: GenerationReport = generator.generate(payload)
        except InputValidationError as exc:
            return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)
        except SchemaLookupError as exc:
            return _error_response(status.HTTP_400_BAD_REQUEST, exc.detail)
        except Exception as exc:
            logger.error("Error generating code: %s", exc, exc_info=True)
            return _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, str(exc)
            )
        return report.response

    @app.get("/api/connection", response_model=ConnectionResult)
    def connection(
        provider: SchemaProvider = Depends(get_schema_provider),
    ) -> Union[ConnectionResult, JSONResponse]:
        """Probe the database; 503 when it is unreachable."""
        result: ConnectionResult = provider.test_connection()
        if not result.success:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=result.model_dump(),
            )
        return result

    return app


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "create_app",
    "get_schema_provider",
    "get_code_generator",
    "INTERNAL_ERROR_MESSAGE",
]

logger.debug("cqrsgen.app loaded.")
