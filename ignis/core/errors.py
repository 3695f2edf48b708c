"""
=============================================================================
IGNIS - ERROR HANDLING MODULE
=============================================================================
Global exception handlers for the occurrence API.

Error taxonomy:
- Store/query failure: logged, answered with 500 {"erro", "detalhes"}
- Anything else unexpected: logged, answered with 500 {"erro": "Erro desconhecido"}
- Unknown filter codes are not errors; they produce empty result sets

Usage:
    # In main.py
    from ignis.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ignis.core.config import settings

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Erro desconhecido"


class OccurrenceQueryError(Exception):
    """Raised when the spatial store fails to answer an occurrence query."""

    def __init__(self, message: str, detail: str):
        super().__init__(message)
        self.message = message
        self.detail = detail


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(OccurrenceQueryError)
    async def occurrence_query_error_handler(
        request: Request, exc: OccurrenceQueryError
    ):
        logger.error(
            "Occurrence query failed on %s %s: %s",
            request.method,
            request.url.path,
            exc.detail,
        )
        return JSONResponse(
            status_code=500,
            content={"erro": exc.message, "detalhes": exc.detail},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        The full traceback stays server-side; the client only sees the
        exception message when DEBUG is on.
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        content = {"erro": UNKNOWN_ERROR_MESSAGE}
        if settings.DEBUG:
            content["detalhes"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content=content)
