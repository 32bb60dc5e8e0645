"""Exception handlers for the admin API."""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.exceptions import CacheError, SchoolCommonsError, create_error_response

logger = logging.getLogger(__name__)

STATUS_CODES: Dict[Type[SchoolCommonsError], int] = {
    CacheError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_code(exception: SchoolCommonsError) -> int:
    """Status code of the closest mapped exception class, 500 otherwise."""
    for error_class in type(exception).__mro__:
        if error_class in STATUS_CODES:
            return STATUS_CODES[error_class]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI) -> None:
    """Render school-commons exceptions with `create_error_response`."""

    @app.exception_handler(SchoolCommonsError)
    async def school_commons_exception_handler(request: Request, exc: SchoolCommonsError):
        status_code = get_http_status_code(exc)
        logger.warning(f"{request.method} {request.url.path} failed with {exc.error_code}: {exc.message}")
        return JSONResponse(status_code=status_code, content=create_error_response(exc))
