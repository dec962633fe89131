import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("promo-engine")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request; pricing calls arrive on every cart edit so they log at DEBUG."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - start_time
        if response.status_code >= 500:
            level = logging.WARNING
        elif request.url.path.endswith("/price"):
            level = logging.DEBUG
        else:
            level = logging.INFO

        logger.log(
            level,
            f"{request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Process Time: {elapsed:.4f}s",
        )
        return response
