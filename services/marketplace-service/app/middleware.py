"""
Metrics middleware for the marketplace API.

Automatically tracks HTTP request metrics for all endpoints.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """
    Resolve the route path template for a handled request.

    ``/api/investments/{investment_id}`` is reported instead of the concrete
    URL so that label cardinality stays bounded. The router records the
    matched route in the request scope; requests that matched nothing are
    grouped under ``unmatched``.
    """
    route = request.scope.get("route")
    if route is None:
        return UNMATCHED_ROUTE
    return getattr(route, "path_format", None) or getattr(route, "path", None) or UNMATCHED_ROUTE


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to automatically track Prometheus metrics for all HTTP requests.

    Tracks:
    - Request count by method, route template, and status code
    - Request duration by method and route template

    Requests whose handler raises are recorded with status 500.
    """

    def __init__(self, app, track_func: Callable):
        """
        Initialize the middleware.

        Args:
            app: FastAPI application
            track_func: Function to call for tracking metrics (method, endpoint, status, duration)
        """
        super().__init__(app)
        self.track_func = track_func

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            self.track_func(
                method=request.method,
                endpoint=route_template(request),
                status_code=status_code,
                duration=time.perf_counter() - start_time,
            )

        return response
