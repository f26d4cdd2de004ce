"""
Dashboard HTTP Routes

Exposes the dashboard view-models and the booking intake as JSON.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from studio_dashboard.models.schemas import AgendaView, OverviewView, ServiceOption
from studio_dashboard.services.dashboard import DashboardError, DashboardService
from studio_dashboard.services.intake import IntakeForm

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])

_dashboard: Optional[DashboardService] = None


def get_dashboard_service() -> DashboardService:
    """
    Get or create the dashboard service.

    Returns:
        DashboardService: Shared instance for this process
    """
    global _dashboard
    if _dashboard is None:
        _dashboard = DashboardService()
        logger.info("Dashboard service created")
    return _dashboard


def close_dashboard_service() -> None:
    """Release the HTTP session of the shared dashboard service."""
    global _dashboard
    if _dashboard is not None:
        _dashboard.client.session.close()
        _dashboard = None
        logger.info("Dashboard service closed")


@router.get("/dashboard", response_model=OverviewView)
async def dashboard_overview(
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Stats, latest requests and the weekly histogram."""
    try:
        return await dashboard.overview()
    except DashboardError as e:
        raise HTTPException(status_code=503, detail=f"Fehler beim Laden: {e}")


@router.get("/dashboard/agenda", response_model=AgendaView)
async def dashboard_agenda(
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Today's appointments and upcoming appointments grouped by day."""
    try:
        return await dashboard.agenda()
    except DashboardError as e:
        raise HTTPException(status_code=503, detail=f"Fehler beim Laden: {e}")


@router.get("/dashboard/status")
async def dashboard_status(
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    snapshot = dashboard.snapshot
    return {
        "loading": dashboard.loading,
        "submitting": dashboard.submitting,
        "error": dashboard.error,
        "fetched_at": snapshot.fetched_at.isoformat() if snapshot else None,
    }


@router.post("/dashboard/refresh")
async def dashboard_refresh(
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """
    Reload all three collections.

    This is the only way out of a failed fetch cycle.
    """
    try:
        snapshot = await dashboard.refresh()
    except DashboardError as e:
        raise HTTPException(status_code=503, detail=f"Fehler beim Laden: {e}")

    return {
        "status": "ok",
        "fetched_at": snapshot.fetched_at.isoformat(),
        "appointments": len(snapshot.appointments),
        "customers": len(snapshot.customers),
        "services": len(snapshot.services),
    }


@router.get("/services", response_model=List[ServiceOption])
async def list_service_options(
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Service catalog entries for the booking form."""
    try:
        return await dashboard.service_options()
    except DashboardError as e:
        raise HTTPException(status_code=503, detail=f"Fehler beim Laden: {e}")


@router.post("/appointments", status_code=201)
async def create_appointment(
    form: IntakeForm,
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """
    Create a new appointment request from the booking form.

    Returns:
        201 with the created record, 409 while another booking is being
        saved, 502 when the Record Store rejects the request
    """
    result = await dashboard.submit(form)
    if not result["success"]:
        status_code = 409 if result.get("error") == "submission_in_progress" else 502
        return JSONResponse(status_code=status_code, content=result)
    return result
