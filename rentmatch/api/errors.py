import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rentmatch.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidRequestError,
    MatchEngineError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: 404,
    InvalidRequestError: 400,
    AuthorizationError: 403,
    ConflictError: 409,
}


def status_code_for(error: MatchEngineError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MatchEngineError)
    async def match_engine_error(request: Request, exc: MatchEngineError):
        status_code = status_code_for(exc)
        logger.info("%s %s -> %s: %s", request.method, request.url.path, status_code, exc.message)
        return JSONResponse(status_code=status_code, content=exc.to_dict())
