"""
Error handling that converts exceptions to HTTP responses.
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.exceptions import ThumbnailsException
import logging

logger = logging.getLogger(__name__)


async def thumbnails_exception_handler(request: Request, exc: ThumbnailsException) -> JSONResponse:
    """Render an application exception as a JSON error body."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"Application error: {exc.message}",
        extra={
            "context": {
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method
            }
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "status_code": exc.status_code
        }
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to convert exceptions to appropriate HTTP responses."""

    async def dispatch(self, request: Request, call_next):
        """Process each request and handle exceptions."""
        try:
            return await call_next(request)

        except ThumbnailsException as e:
            return await thumbnails_exception_handler(request, e)

        except Exception as e:
            logger.error(
                f"Unexpected error: {str(e)}",
                exc_info=True,
                extra={
                    "context": {
                        "path": request.url.path,
                        "method": request.method
                    }
                }
            )

            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "detail": str(e),
                    "status_code": 500
                }
            )
