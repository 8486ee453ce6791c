from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.rbac import ATTENDANCE_READ, ATTENDANCE_WRITE, require_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from .schemas import AttendanceSave, AttendanceSuggestion, SessionAttendanceView
from . import service

router = APIRouter(prefix="/api/v1", tags=["attendance"])


@router.get("/sessions/{session_id}/attendance", response_model=SessionAttendanceView)
async def get_session_attendance(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(ATTENDANCE_READ)),
) -> SessionAttendanceView:
    """Attendance marking view: roster, persisted attendance, and absence-request auto-assist."""
    try:
        return await service.get_session_attendance_view(db, ctx, session_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put("/sessions/{session_id}/attendance", response_model=SessionAttendanceView)
async def save_session_attendance(
    session_id: UUID,
    payload: AttendanceSave,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(ATTENDANCE_WRITE)),
) -> SessionAttendanceView:
    """Save attendance exactly as submitted. Suggestions are never saved on their own."""
    try:
        return await service.save_session_attendance(db, ctx, session_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/attendance/suggestion", response_model=AttendanceSuggestion)
async def get_attendance_suggestion(
    session_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(ATTENDANCE_READ)),
) -> AttendanceSuggestion:
    try:
        return await service.get_attendance_suggestion(db, ctx, session_id, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
