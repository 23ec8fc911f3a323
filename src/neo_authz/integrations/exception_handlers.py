"""FastAPI exception handlers for neo-authz errors."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.exceptions import NeoAuthzError, create_error_response, get_http_status_code

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every ``NeoAuthzError`` raised by a route to its HTTP status and error body."""
    
    @app.exception_handler(NeoAuthzError)
    async def neo_authz_exception_handler(request: Request, exc: NeoAuthzError):
        status_code = get_http_status_code(exc)
        if status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=status_code, content=create_error_response(exc))
