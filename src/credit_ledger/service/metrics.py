"""Prometheus metrics for the ledger service.

Exports key metrics for monitoring:
- Request latency summaries per route
- Request counts by route and status
- Transaction outcomes by direction (accepted / rejected reason)
- Active requests
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

UNMATCHED_PATH = "<unmatched>"


@dataclass
class LedgerMetrics:
    """Collects and exposes Prometheus-style metrics.

    Metrics are kept in process memory and rendered as Prometheus text
    on the /metrics endpoint.
    """

    # Counters
    request_count: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    request_errors: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    transactions: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))

    # Summaries (raw samples for percentile calculation)
    request_latency: dict[str, list[float]] = field(default_factory=lambda: defaultdict(list))

    # Gauges
    active_requests: int = 0

    max_samples: int = 1000

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        """Record a completed request."""
        key = f"{method}:{path}"
        with self._lock:
            self.request_count[key] += 1

            if status_code >= 400:
                self.request_errors[f"{key}:{status_code}"] += 1

            samples = self.request_latency[key]
            if len(samples) >= self.max_samples:
                self.request_latency[key] = samples = samples[-self.max_samples // 2:]
            samples.append(duration_seconds)

    def record_transaction(self, direction: str, outcome: str) -> None:
        """Record a transaction outcome ("accepted" or a rejection reason)."""
        with self._lock:
            self.transactions[(direction, outcome)] += 1

    def _percentile(self, values: list[float], p: float) -> float:
        if not values:
            return 0.0
        sorted_values = sorted(values)
        index = int(len(sorted_values) * p)
        return sorted_values[min(index, len(sorted_values) - 1)]

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []

        with self._lock:
            lines.append("# HELP ledger_requests_total Total number of HTTP requests")
            lines.append("# TYPE ledger_requests_total counter")
            for key, count in self.request_count.items():
                method, path = key.split(":", 1)
                lines.append(f'ledger_requests_total{{method="{method}",path="{path}"}} {count}')

            lines.append("# HELP ledger_request_errors_total Total number of HTTP errors")
            lines.append("# TYPE ledger_request_errors_total counter")
            for key, count in self.request_errors.items():
                method, rest = key.split(":", 1)
                path, status = rest.rsplit(":", 1)
                lines.append(
                    f'ledger_request_errors_total{{method="{method}",path="{path}",status="{status}"}} {count}'
                )

            lines.append("# HELP ledger_request_duration_seconds Request latency percentiles")
            lines.append("# TYPE ledger_request_duration_seconds summary")
            for key, values in self.request_latency.items():
                method, path = key.split(":", 1)
                for quantile in [0.5, 0.9, 0.99]:
                    p_value = self._percentile(values, quantile)
                    lines.append(
                        f'ledger_request_duration_seconds{{method="{method}",path="{path}",quantile="{quantile}"}} {p_value:.6f}'
                    )

            lines.append("# HELP ledger_transactions_total Transactions by direction and outcome")
            lines.append("# TYPE ledger_transactions_total counter")
            for (direction, outcome), count in sorted(self.transactions.items()):
                lines.append(
                    f'ledger_transactions_total{{direction="{direction}",outcome="{outcome}"}} {count}'
                )

            lines.append("# HELP ledger_active_requests Current number of in-flight requests")
            lines.append("# TYPE ledger_active_requests gauge")
            lines.append(f"ledger_active_requests {self.active_requests}")

        return "\n".join(lines) + "\n"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    def __init__(self, app, metrics: LedgerMetrics):
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        metrics = self._metrics
        metrics.active_requests += 1
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            if request.url.path != "/metrics":
                # Route template keeps account ids out of the labels; anything
                # that matched no route shares one label
                route = request.scope.get("route")
                metrics.record_request(
                    method=request.method,
                    path=getattr(route, "path", UNMATCHED_PATH),
                    status_code=response.status_code,
                    duration_seconds=duration,
                )

            return response
        finally:
            metrics.active_requests -= 1


def add_metrics_endpoint(app: FastAPI, metrics: LedgerMetrics) -> None:
    """Add /metrics endpoint to FastAPI app."""

    @app.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=metrics.export_prometheus(),
            media_type="text/plain; charset=utf-8",
        )


__all__ = [
    "LedgerMetrics",
    "MetricsMiddleware",
    "UNMATCHED_PATH",
    "add_metrics_endpoint",
]
