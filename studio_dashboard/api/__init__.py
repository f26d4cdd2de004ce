"""
API Module Initialization

Exports the dashboard router and its service accessors.
"""

from studio_dashboard.api.routes import (
    router as dashboard_router,
    get_dashboard_service,
    close_dashboard_service,
)

__all__ = [
    "dashboard_router",
    "get_dashboard_service",
    "close_dashboard_service",
]
