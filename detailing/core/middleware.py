"""Request tracing: correlation ids and one access log line per request"""
import logging
import time
import uuid
from contextvars import ContextVar

from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Read by the logging filter so service-layer log lines carry the request's id
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

# Probes hit these every few seconds
QUIET_PATHS = ("/health",)


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation id or mint one, and echo it back"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
    request.state.correlation_id = correlation_id
    token = correlation_id_var.set(correlation_id)

    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)

    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log method, path, status and latency of every non-probe request"""
    if request.url.path.startswith(QUIET_PATHS):
        return await call_next(request)

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"{request.method} {request.url.path} failed")
        raise

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    log = logger.warning if response.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms} ms)")
    return response
