"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency and a short
request ID. The ID goes into request.state for the ApiResponse envelope and
back to the client as X-Request-ID.

Rejected operations are logged at WARNING so oracle halts (503), pauses (423)
and solvency rejections (422) stand out from normal traffic; 5xx other than
oracle halts are logged at ERROR.

Log format:
    INFO [POST] /api/v1/positions/deposit → 200 (4ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("cdp.request")

_ORACLE_HALT_STATUS = 503


def _level_for(status_code: int) -> int:
    if status_code >= 500 and status_code != _ORACLE_HALT_STATUS:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.log(
            _level_for(response.status_code),
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
