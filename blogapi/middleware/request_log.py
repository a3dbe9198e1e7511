import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


async def log_requests(request: Request, call_next):
    # Só loga erros e health checks que falharam
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"

    is_health = request.url.path == request.app.state.settings.API_PREFIX + HEALTH_PATH
    if not is_health and response.status_code >= 400:
        logger.warning(f"[{request.method}] {path} - {response.status_code} - {latency_ms:.2f}ms")
    elif is_health and response.status_code != 200:
        logger.warning(f"[HEALTH] {path} - {response.status_code} - {latency_ms:.2f}ms")

    return response
