"""Logging middleware for request/response tracking."""

import json
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import Message

from ...utils.logger import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    def __init__(self, app):
        super().__init__(app)
        self.logger = get_logger()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process and log each request/response."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        body = None
        if request.method in ["POST", "PUT", "PATCH"]:
            body_bytes = await request.body()
            if body_bytes:
                try:
                    body = json.loads(body_bytes)
                except ValueError as e:
                    self.logger.log_debug(f"Could not parse request body: {e}")

            # downstream handlers read the body again
            async def receive() -> Message:
                return {"type": "http.request", "body": body_bytes}
            request._receive = receive

        self.logger.log_request(
            request_id=request_id,
            method=request.method,
            endpoint=request.url.path,
            headers=dict(request.headers),
            body=body,
            query_params=dict(request.query_params)
        )

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.logger.log_error(
                f"Request failed: {str(e)}",
                error=e,
                request_id=request_id,
                duration_ms=duration_ms
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        self.logger.log_response(
            request_id=request_id,
            status_code=response.status_code,
            headers=dict(response.headers),
            body=None,
            duration_ms=duration_ms
        )
        response.headers["X-Request-ID"] = request_id
        return response
