import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from coincraft.core.logging import LOGGER_NAME, latency_bucket_ms, request_id_ctx_var


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request_id for the duration of a request and log completion.

    An incoming x-request-id header is honoured so callers can correlate
    dashboard requests with their own logs.
    """

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name
        self.logger = logging.getLogger(LOGGER_NAME)

    async def dispatch(self, request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[self.header_name] = rid
        self.logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "request.complete",
            extra={
                "request_id": rid,
                "user_id": request.query_params.get("user_id"),
                "event_type": "request.complete",
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000),
            },
        )
        return response
