# src/pinwatch/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .reports import router as reports_router
from .stats import router as stats_router
from .verifiers import router as verifiers_router

__all__ = [
    "reports_router",
    "stats_router",
    "verifiers_router",
]
