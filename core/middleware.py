"""
Request logging and response hardening middleware
"""
import time
import uuid
import logging
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log how it went"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Honour an upstream id so traces line up across services
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        logger.info(f"Request {request_id}: {request.method} {request.url.path} - Client: {client}")

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.error(f"Request {request_id} failed: {str(e)} - Time: {elapsed:.3f}s")
            raise

        elapsed = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 400 else logger.info
        log(f"Response {request_id}: {response.status_code} - Time: {elapsed:.3f}s")

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Cache-Control": "no-store",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response
