"""
Job Tracker - API for job applications.

Endpoints for recording applications, moving them through the pipeline,
and reading the table, board, dashboard stats and CSV export. All reads
come from the user's in-memory ApplicationState; all writes go through it.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from typing import List, Optional
from datetime import date
import io

from ..auth.dependencies import get_current_active_user
from ..auth.models import User
from ..rate_limit import limiter, RATE_LIMIT_GENERAL, RATE_LIMIT_READ
from ..schemas import (
    ApplicationStatus, Platform,
    JobApplication, JobApplicationFields, JobApplicationPatch,
    DashboardStats, BoardColumn,
)
from ..sessions import StateRegistry, get_state_registry
from ..state import ApplicationState
from .. import views

router = APIRouter()

STATUS_FILTER_PATTERN = "^(all|" + "|".join(s.value for s in ApplicationStatus) + ")$"
PLATFORM_FILTER_PATTERN = "^(all|" + "|".join(p.value for p in Platform) + ")$"


async def get_application_state(
    current_user: User = Depends(get_current_active_user),
    registry: StateRegistry = Depends(get_state_registry)
) -> ApplicationState:
    """The current user's application state, loaded on first use."""
    return await registry.get(current_user.id)


def _store_failure(state: ApplicationState) -> HTTPException:
    notice = state.pop_notification()
    detail = notice.message if notice else "Application store unavailable"
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


@router.get("/", response_model=List[JobApplication], response_model_exclude_none=True)
@limiter.limit(RATE_LIMIT_READ)
async def list_applications(
    request: Request,
    search: str = "",
    status_filter: str = Query("all", alias="status", pattern=STATUS_FILTER_PATTERN),
    platform: str = Query("all", pattern=PLATFORM_FILTER_PATTERN),
    state: ApplicationState = Depends(get_application_state)
):
    """List applications matching the filters, most recently updated first."""
    return views.visible_applications(state.snapshot, search, status_filter, platform)


@router.get("/stats", response_model=DashboardStats)
@limiter.limit(RATE_LIMIT_READ)
async def get_application_stats(
    request: Request,
    today: Optional[date] = Query(None, description="Client's local date; defaults to the server's"),
    state: ApplicationState = Depends(get_application_state)
):
    """Dashboard counters over all of the user's applications."""
    return views.compute_stats(state.snapshot, today)


@router.get("/board", response_model=List[BoardColumn], response_model_exclude_none=True)
@limiter.limit(RATE_LIMIT_READ)
async def get_board(
    request: Request,
    search: str = "",
    platform: str = Query("all", pattern=PLATFORM_FILTER_PATTERN),
    today: Optional[date] = None,
    state: ApplicationState = Depends(get_application_state)
):
    """Kanban board: one column per status, cards flagged overdue or due soon."""
    cards = views.visible_applications(state.snapshot, search, "all", platform)
    return views.kanban_columns(cards, today)


@router.get("/export")
@limiter.limit(RATE_LIMIT_READ)
async def export_applications(
    request: Request,
    state: ApplicationState = Depends(get_application_state)
):
    """Download every application as CSV."""
    export = state.export_csv()
    return StreamingResponse(
        io.BytesIO(export.content.encode()),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export.filename}"}
    )


@router.get("/notifications")
async def get_notifications(
    state: ApplicationState = Depends(get_application_state)
):
    """Pending user-visible notices (for example a failed load). Each is returned once."""
    return [
        {"level": notice.level, "message": notice.message}
        for notice in state.drain_notifications()
    ]


@router.get("/{application_id}", response_model=JobApplication, response_model_exclude_none=True)
async def get_application(
    application_id: str,
    state: ApplicationState = Depends(get_application_state)
):
    """Get a specific application."""
    application = state.get(application_id)
    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


@router.post(
    "/",
    response_model=JobApplication,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_GENERAL)
async def create_application(
    request: Request,
    application: JobApplicationFields,
    state: ApplicationState = Depends(get_application_state)
):
    """Record a new application."""
    record = await state.add(application)
    if record is None:
        raise _store_failure(state)
    return record


@router.patch("/{application_id}", response_model=JobApplication, response_model_exclude_none=True)
@limiter.limit(RATE_LIMIT_GENERAL)
async def update_application(
    request: Request,
    application_id: str,
    patch: JobApplicationPatch,
    state: ApplicationState = Depends(get_application_state)
):
    """Update only the supplied fields of an application."""
    if state.get(application_id) is None:
        raise HTTPException(status_code=404, detail="Application not found")

    if not await state.update(application_id, patch):
        raise _store_failure(state)
    return state.get(application_id)


@router.delete("/{application_id}")
@limiter.limit(RATE_LIMIT_GENERAL)
async def delete_application(
    request: Request,
    application_id: str,
    state: ApplicationState = Depends(get_application_state)
):
    """Delete an application. Deleting one that is already gone also succeeds."""
    if not await state.delete(application_id):
        raise _store_failure(state)
    return {"message": "Application deleted"}
