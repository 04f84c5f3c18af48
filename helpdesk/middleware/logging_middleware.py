"""
Logging Middleware - Request/Response logging
"""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

SKIP_PATHS = {"/api/health"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its outcome and duration.

    Adds an `X-Process-Time` header (milliseconds) to responses. Health
    checks are passed through unlogged.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = request.url.path
        actor = request.headers.get("x-user-id", "anonymous")

        logger.info(
            f"→ {method} {path}",
            extra={
                "method": method,
                "path": path,
                "actor": actor,
                "client": request.client.host if request.client else "unknown",
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"✗ {method} {path} ERROR ({duration_ms}ms): {e}",
                extra={"method": method, "path": path, "duration_ms": duration_ms},
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"← {method} {path} {response.status_code} ({duration_ms}ms)",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms
            }
        )
        response.headers["X-Process-Time"] = str(duration_ms)
        return response
