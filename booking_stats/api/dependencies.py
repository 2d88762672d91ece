"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from booking_stats.domain.stats import StatsEngine

_engine = StatsEngine()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_stats_engine() -> StatsEngine:
    """Provide the process-wide statistics engine (shares one result cache)"""
    return _engine
