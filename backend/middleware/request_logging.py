"""
Request logging middleware

Tags every request with an X-Request-ID (reusing the caller's) and logs
method, path, status and duration. Headers and cookies are never logged.
"""
import logging
import time
import uuid

from fastapi import Request

logger = logging.getLogger("api.requests")

REQUEST_ID_HEADER = "X-Request-ID"


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.error(
            f"❌ {request.method} {request.url.path} failed after {duration_ms:.1f}ms",
            extra={"request_id": request_id},
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 1),
        },
    )
    return response
