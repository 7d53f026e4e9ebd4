"""
Prometheus metrics for Marketplace Service.

Tracks HTTP traffic, investment lifecycle events, listings and messaging.
"""

from fastapi import Response
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram,
                               generate_latest)

# Request metrics
http_requests_total = Counter(
    "marketplace_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "marketplace_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0)
)

# Investment metrics
investments_created_total = Counter(
    "marketplace_investments_created_total",
    "Total investments submitted",
    ["industry"]
)

investment_amount_naira = Histogram(
    "marketplace_investment_amount_naira",
    "Distribution of submitted investment amounts",
    buckets=(1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000, 10_000_000, 50_000_000)
)

investment_transitions_total = Counter(
    "marketplace_investment_transitions_total",
    "Investment status transitions",
    ["from_status", "to_status"]
)

returns_recorded_total = Counter(
    "marketplace_returns_recorded_total",
    "Total returns recorded against investments"
)

# Listing and messaging metrics
opportunities_created_total = Counter(
    "marketplace_opportunities_created_total",
    "Total funding opportunities listed",
    ["industry", "risk_level"]
)

messages_sent_total = Counter(
    "marketplace_messages_sent_total",
    "Total direct messages sent"
)

calculator_projections_total = Counter(
    "marketplace_calculator_projections_total",
    "Total investment projections calculated",
    ["risk_level"]
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_investment_created(industry: str, amount: float):
    """Track a submitted investment."""
    investments_created_total.labels(industry=industry).inc()
    investment_amount_naira.observe(amount)


def track_investment_transition(from_status: str, to_status: str):
    investment_transitions_total.labels(from_status=from_status, to_status=to_status).inc()


def track_return_recorded():
    returns_recorded_total.inc()


def track_opportunity_created(industry: str, risk_level: str):
    opportunities_created_total.labels(industry=industry, risk_level=risk_level).inc()


def track_message_sent():
    messages_sent_total.inc()


def track_calculator_projection(risk_level: str):
    calculator_projections_total.labels(risk_level=risk_level).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
