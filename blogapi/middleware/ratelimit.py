import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


@dataclass
class Visitor:
    last_seen: float
    requests: int


class RateLimiter:
    """
    Limite por IP: até ``burst`` requisições enquanto o intervalo entre elas
    for menor que ``interval``; passado o intervalo o contador volta a 1.
    """

    def __init__(self, interval: float, burst: int, idle_timeout: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.burst = burst
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.visitors: Dict[str, Visitor] = {}
        self.lock = threading.Lock()

    def is_allowed(self, ip: str) -> bool:
        with self.lock:
            now = self.clock()
            visitor = self.visitors.get(ip)
            if visitor is None:
                self.visitors[ip] = Visitor(last_seen=now, requests=1)
                return True

            if now - visitor.last_seen < self.interval:
                if visitor.requests >= self.burst:
                    return False
                visitor.requests += 1
            else:
                visitor.requests = 1

            visitor.last_seen = now
            return True

    def sweep(self) -> int:
        """Remove IPs parados há mais de ``idle_timeout``."""
        with self.lock:
            now = self.clock()
            idle = [ip for ip, v in self.visitors.items() if now - v.last_seen > self.idle_timeout]
            for ip in idle:
                del self.visitors[ip]
        return len(idle)


async def sweep_forever(limiter: RateLimiter, every: float) -> None:
    while True:
        await asyncio.sleep(every)
        removed = limiter.sweep()
        if removed:
            logger.debug(f"Rate limiter evicted {removed} idle clients")


class RateLimitExceeded(Exception):
    pass


def rate_limit(request: Request) -> None:
    """Dependência aplicada ao grupo público de rotas."""
    limiter: RateLimiter = request.app.state.rate_limiter
    ip = request.client.host if request.client else "unknown"
    if not limiter.is_allowed(ip):
        raise RateLimitExceeded(ip)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "message": "Rate limit exceeded. Please try again later.",
        },
    )
