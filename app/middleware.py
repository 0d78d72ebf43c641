import time
import logging
from typing import Dict, List

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .exceptions import create_error_response

logger = logging.getLogger(__name__)

# Room for the multipart envelope around a maximum-size file
MULTIPART_OVERHEAD = 1024 * 1024


class RateLimitMiddleware(BaseHTTPMiddleware):
    window_seconds = 60

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.requests: Dict[str, List[float]] = {}
        self._last_sweep = 0.0

    def _sweep(self, current_time: float) -> None:
        # Forget clients with no request inside the window
        stale = [ip for ip, times in self.requests.items()
                 if not times or current_time - times[-1] >= self.window_seconds]
        for ip in stale:
            del self.requests[ip]
        self._last_sweep = current_time

    async def dispatch(self, request: Request, call_next):
        rate_limit = settings.RATE_LIMIT_PER_MINUTE
        if rate_limit <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        current_time = time.time()
        if current_time - self._last_sweep >= self.window_seconds:
            self._sweep(current_time)

        recent = [
            req_time for req_time in self.requests.get(client_ip, [])
            if current_time - req_time < self.window_seconds
        ]

        if len(recent) >= rate_limit:
            self.requests[client_ip] = recent
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=429,
                content=create_error_response("Rate limit exceeded. Please try again later.", 429)
            )

        recent.append(current_time)
        self.requests[client_ip] = recent
        return await call_next(request)


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(f"Response: {response.status_code} in {duration:.3f}s")

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error: {str(e)}", exc_info=True)
            message = f"Internal server error: {str(e)}" if settings.DEBUG else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response(message, 500))


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Hard cap from Content-Length; per-file limits are enforced by the upload routes
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                size = None
            if size is not None and size > settings.MAX_FILE_SIZE + MULTIPART_OVERHEAD:
                max_mb = settings.MAX_FILE_SIZE // (1024 * 1024)
                return JSONResponse(
                    status_code=413,
                    content=create_error_response(f"File too large. Maximum size is {max_mb}MB.", 413)
                )
        return await call_next(request)
