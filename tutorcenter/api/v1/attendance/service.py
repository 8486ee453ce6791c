"""
Attendance marking view with absence-request auto-assist.

The projection is read-only: an APPROVED request only pre-selects EXCUSED in the form
state returned to the client. Nothing is written until staff call save_session_attendance.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.api.v1.audit import service as audit
from tutorcenter.auth.rbac import ATTENDANCE_READ, ATTENDANCE_WRITE, has_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.enums import AbsenceRequestStatus, AttendanceStatus, AuditActorType, Role
from tutorcenter.core.exceptions import REASON_ROLE_NOT_ALLOWED, Forbidden, NotFound, ValidationError
from tutorcenter.core.models import AbsenceRequest, Attendance, SessionStudent, Student, TutoringSession
from tutorcenter.core.timeutils import ensure_utc, utcnow

from .schemas import (
    AbsenceRequestProjection,
    AttendanceSave,
    AttendanceSuggestion,
    AutoAssist,
    PersistedAttendance,
    RosterRow,
    RosterStudent,
    SessionAttendanceView,
    SessionInfo,
    SuggestionMeta,
    SuggestionNotice,
)

logger = logging.getLogger(__name__)

ATTENDANCE_ALREADY_RECORDED = SuggestionNotice(
    code="ATTENDANCE_ALREADY_RECORDED",
    message="Attendance already recorded; suggestion provided only",
)


# ----- Projection -----
def project_request(request: Optional[AbsenceRequest]) -> Tuple[Optional[AbsenceRequestProjection], AutoAssist]:
    """Map an absence request (or its absence) onto the banner/suggestion pair."""
    if request is None:
        return None, AutoAssist()
    status = AbsenceRequestStatus(request.status)
    if status == AbsenceRequestStatus.WITHDRAWN:
        # A retracted request shows nothing
        return None, AutoAssist(explanation_code="REQUEST_WITHDRAWN")

    projection = AbsenceRequestProjection(request_id=request.id, status=status.value)
    if status == AbsenceRequestStatus.APPROVED:
        return projection, AutoAssist(
            banner=status.value,
            suggested_status=AttendanceStatus.EXCUSED,
            explanation_code="REQUEST_APPROVED",
        )
    if status == AbsenceRequestStatus.PENDING:
        return projection, AutoAssist(banner=status.value, explanation_code="REQUEST_PENDING")
    if status == AbsenceRequestStatus.DECLINED:
        return projection, AutoAssist(banner=status.value, explanation_code="REQUEST_DECLINED")
    raise ValueError(f"Unhandled absence request status {status}")


def _attendance_to_persisted(a: Optional[Attendance]) -> Optional[PersistedAttendance]:
    if a is None:
        return None
    return PersistedAttendance(
        status=a.status,
        note=a.note,
        parent_visible_note=a.parent_visible_note,
        marked_at=ensure_utc(a.marked_at),
        marked_by_user_id=a.marked_by_user_id,
    )


def build_roster_row(student: Student, attendance: Optional[Attendance], request: Optional[AbsenceRequest]) -> RosterRow:
    projection, assist = project_request(request)
    persisted = _attendance_to_persisted(attendance)
    if persisted is not None:
        selected = persisted.status
    elif assist.suggested_status is not None:
        selected = assist.suggested_status.value
    else:
        selected = None
    return RosterRow(
        student=RosterStudent(id=student.id, first_name=student.first_name, last_name=student.last_name),
        attendance=persisted,
        absence_request=projection,
        auto_assist=assist,
        selected_status=selected,
    )


# ----- Loading -----
def _require(ctx: RequestContext, capability: str) -> None:
    if not has_capability(ctx.role, capability):
        raise Forbidden("Insufficient permissions", reason=REASON_ROLE_NOT_ALLOWED)


async def _get_staff_session(db: AsyncSession, ctx: RequestContext, session_id: UUID) -> TutoringSession:
    """Tenant-scoped session; tutors only see sessions they teach."""
    q = select(TutoringSession).where(
        TutoringSession.id == session_id,
        TutoringSession.tenant_id == ctx.tenant_id,
    )
    if ctx.role == Role.TUTOR:
        q = q.where(TutoringSession.tutor_id == ctx.caller_id)
    session = (await db.execute(q)).scalar_one_or_none()
    if session is None:
        raise NotFound("Session not found")
    return session


async def _load_roster(db: AsyncSession, tenant_id: UUID, session_id: UUID) -> List[Student]:
    result = await db.execute(
        select(Student)
        .join(SessionStudent, SessionStudent.student_id == Student.id)
        .where(
            SessionStudent.tenant_id == tenant_id,
            SessionStudent.session_id == session_id,
            Student.tenant_id == tenant_id,
        )
        .order_by(Student.last_name, Student.first_name)
    )
    return list(result.scalars().all())


async def _load_attendance(db: AsyncSession, tenant_id: UUID, session_id: UUID) -> Dict[UUID, Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.tenant_id == tenant_id,
            Attendance.session_id == session_id,
        )
    )
    return {a.student_id: a for a in result.scalars().all()}


async def _load_requests(db: AsyncSession, tenant_id: UUID, session_id: UUID) -> Dict[UUID, AbsenceRequest]:
    result = await db.execute(
        select(AbsenceRequest).where(
            AbsenceRequest.tenant_id == tenant_id,
            AbsenceRequest.session_id == session_id,
        )
    )
    return {r.student_id: r for r in result.scalars().all()}


def _session_info(s: TutoringSession) -> SessionInfo:
    return SessionInfo(
        id=s.id,
        tutor_id=s.tutor_id,
        start_at=ensure_utc(s.start_at),
        end_at=ensure_utc(s.end_at),
        session_type=s.session_type,
        timezone=s.timezone,
    )


# ----- Operations -----
async def get_session_attendance_view(
    db: AsyncSession,
    ctx: RequestContext,
    session_id: UUID,
) -> SessionAttendanceView:
    """Roster with persisted attendance and auto-assist per student. Takes no locks and writes nothing."""
    _require(ctx, ATTENDANCE_READ)
    session = await _get_staff_session(db, ctx, session_id)
    roster = await _load_roster(db, ctx.tenant_id, session.id)
    attendance = await _load_attendance(db, ctx.tenant_id, session.id)
    requests = await _load_requests(db, ctx.tenant_id, session.id)
    return SessionAttendanceView(
        session=_session_info(session),
        roster=[build_roster_row(s, attendance.get(s.id), requests.get(s.id)) for s in roster],
    )


async def get_attendance_suggestion(
    db: AsyncSession,
    ctx: RequestContext,
    session_id: UUID,
    student_id: UUID,
) -> AttendanceSuggestion:
    _require(ctx, ATTENDANCE_READ)
    session = await _get_staff_session(db, ctx, session_id)
    on_roster = (await db.execute(
        select(SessionStudent.id).where(
            SessionStudent.tenant_id == ctx.tenant_id,
            SessionStudent.session_id == session.id,
            SessionStudent.student_id == student_id,
        )
    )).scalar_one_or_none()
    if on_roster is None:
        raise NotFound("Student not found in session")

    attendance_id = (await db.execute(
        select(Attendance.id).where(
            Attendance.tenant_id == ctx.tenant_id,
            Attendance.session_id == session.id,
            Attendance.student_id == student_id,
        )
    )).scalar_one_or_none()
    request = (await db.execute(
        select(AbsenceRequest).where(
            AbsenceRequest.tenant_id == ctx.tenant_id,
            AbsenceRequest.session_id == session.id,
            AbsenceRequest.student_id == student_id,
        )
    )).scalar_one_or_none()

    projection, assist = project_request(request)
    exists = attendance_id is not None
    return AttendanceSuggestion(
        session_id=session.id,
        student_id=student_id,
        absence_request=projection,
        suggested=assist,
        meta=SuggestionMeta(
            attendance_exists=exists,
            notice=ATTENDANCE_ALREADY_RECORDED if exists else None,
        ),
    )


async def save_session_attendance(
    db: AsyncSession,
    ctx: RequestContext,
    session_id: UUID,
    payload: AttendanceSave,
    now: Optional[datetime] = None,
) -> SessionAttendanceView:
    """Persist attendance explicitly submitted by staff. The only writer of attendance rows."""
    _require(ctx, ATTENDANCE_WRITE)
    now = now or utcnow()
    session = await _get_staff_session(db, ctx, session_id)
    roster_ids = {s.id for s in await _load_roster(db, ctx.tenant_id, session.id)}

    seen = set()
    for item in payload.items:
        if item.student_id not in roster_ids:
            raise ValidationError("Student is not on the session roster", details={"student_id": str(item.student_id)})
        if item.student_id in seen:
            raise ValidationError("Duplicate student in payload", details={"student_id": str(item.student_id)})
        seen.add(item.student_id)

    existing = await _load_attendance(db, ctx.tenant_id, session.id)
    for item in payload.items:
        note = item.note.strip() if item.note else None
        parent_note = item.parent_visible_note.strip() if item.parent_visible_note else None
        row = existing.get(item.student_id)
        if row is None:
            db.add(Attendance(
                tenant_id=ctx.tenant_id,
                session_id=session.id,
                student_id=item.student_id,
                status=item.status.value,
                note=note or None,
                parent_visible_note=parent_note or None,
                marked_by_user_id=ctx.caller_id,
                marked_at=now,
            ))
        else:
            row.status = item.status.value
            row.note = note or None
            row.parent_visible_note = parent_note or None
            row.marked_by_user_id = ctx.caller_id
            row.marked_at = now

    counts = Counter(item.status.value for item in payload.items)
    await audit.write_audit_event(
        db,
        ctx.tenant_id,
        AuditActorType.USER,
        ctx.caller_id,
        audit.ATTENDANCE_UPDATED,
        entity_type=audit.ENTITY_ATTENDANCE,
        entity_id=session.id,
        metadata={
            "sessionId": session.id,
            "rowsUpdatedCount": len(payload.items),
            "attendanceCounts": dict(counts),
        },
    )
    await db.commit()
    logger.info("attendance saved session=%s rows=%d tenant=%s", session.id, len(payload.items), ctx.tenant_id)
    return await get_session_attendance_view(db, ctx, session.id)
