"""Middleware for error handling and request logging."""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..models.core import utcnow
from .exceptions import (
    ConfigurationError,
    EdgeValidationError,
    RecordNotFoundError,
    WorkflowEngineError,
    WorkflowValidationError,
    create_error_response,
)
from .logging import get_logger, logging_context


logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns engine errors escaping a route into JSON responses and tags logs with a request ID."""

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.time()

        with logging_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown"
        ):
            try:
                if self.log_requests:
                    logger.info(f"Request started: {request.method} {request.url.path}")

                response = await call_next(request)

                duration = time.time() - start_time
                if self.log_requests:
                    logger.info(
                        f"Request completed: {request.method} {request.url.path} - "
                        f"Status: {response.status_code} - Duration: {duration:.3f}s"
                    )

                response.headers["X-Request-ID"] = request_id
                return response

            except WorkflowEngineError as e:
                duration = time.time() - start_time
                logger.warning(
                    f"Flow engine error: {request.method} {request.url.path} - "
                    f"Error: {e.error_code} - Duration: {duration:.3f}s"
                )

                return JSONResponse(
                    status_code=self._get_status_code_for_error(e),
                    content=create_error_response(e),
                    headers={"X-Request-ID": request_id}
                )

            except Exception as e:
                duration = time.time() - start_time
                logger.error(
                    f"Unexpected error: {request.method} {request.url.path} - "
                    f"Error: {str(e)} - Duration: {duration:.3f}s",
                    exc_info=True
                )

                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "InternalServerError",
                        "message": "An unexpected error occurred",
                        "details": {
                            "error_type": type(e).__name__,
                            "timestamp": utcnow().isoformat()
                        },
                        "request_id": request_id
                    },
                    headers={"X-Request-ID": request_id}
                )

    @staticmethod
    def _get_status_code_for_error(error: WorkflowEngineError) -> int:
        """Determine the HTTP status code for a flow engine error."""
        if isinstance(error, RecordNotFoundError):
            return 404
        if isinstance(error, (WorkflowValidationError, EdgeValidationError, ConfigurationError)):
            return 400
        return 500
