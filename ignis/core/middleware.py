"""
Request tracing and latency budgets for the occurrence API.

Every request is tagged with an X-Request-ID (the client's, when sent) that
is also bound into the structlog context, so the service and query logs of
one request share it. Responses carry X-Process-Time; a response slower than
its path's budget in SLO_THRESHOLDS logs an SLO_BREACH warning together with
the filters in effect, since listings are unpaginated and the filters decide
how many rows the store returned.
"""
import logging
import time
import uuid
from typing import Dict, Mapping, Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ignis.core.config import settings

logger = logging.getLogger("ignis.latency")

REQUEST_ID_HEADER = "X-Request-ID"


class LatencyMonitorMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, thresholds: Optional[Dict[str, float]] = None):
        super().__init__(app)
        self.thresholds = thresholds if thresholds is not None else settings.SLO_THRESHOLDS

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        self.check_budget(request.url.path, elapsed, request.query_params)
        return response

    def budget_for(self, path: str) -> Optional[float]:
        return self.thresholds.get(path.rstrip("/") or "/")

    def check_budget(
        self, path: str, elapsed: float, filters: Optional[Mapping[str, str]] = None
    ) -> bool:
        """True when ``elapsed`` fits the path's budget (or it has none)."""
        budget = self.budget_for(path)
        if budget is None or elapsed <= budget:
            return True

        logger.warning(
            "SLO_BREACH | path=%s | elapsed=%.4fs | budget=%.3fs | filters=%s",
            path,
            elapsed,
            budget,
            dict(filters or {}),
        )
        return False


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
