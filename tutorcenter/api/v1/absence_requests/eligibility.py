"""
Eligibility gate for parent-side absence actions.

Checks run in a fixed order and stop at the first failure:
1. parent linked to student          -> NotFound
2. session in tenant, student on it  -> NotFound
3. session strictly upcoming         -> Forbidden (SESSION_NOT_UPCOMING)
4. no existing row for the pairing   -> Conflict (REQUEST_DUPLICATE)
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.enums import AbsenceRequestStatus
from tutorcenter.core.exceptions import REASON_SESSION_NOT_UPCOMING, Forbidden, NotFound
from tutorcenter.core.models import SessionStudent, StudentParent, TutoringSession
from tutorcenter.core.timeutils import ensure_utc

from . import store
from .state_machine import Action, transition_conflict

logger = logging.getLogger(__name__)


async def assert_parent_linked(
    db: AsyncSession,
    tenant_id: UUID,
    parent_id: UUID,
    student_id: UUID,
) -> None:
    link = (await db.execute(
        select(StudentParent.id).where(
            StudentParent.tenant_id == tenant_id,
            StudentParent.parent_id == parent_id,
            StudentParent.student_id == student_id,
        ).limit(1)
    )).scalar_one_or_none()
    if link is None:
        # 404 rather than 403 so an unlinked parent cannot probe for student ids
        raise NotFound("Student not found")


async def get_roster_session(
    db: AsyncSession,
    tenant_id: UUID,
    session_id: UUID,
    student_id: UUID,
) -> TutoringSession:
    """Session in this tenant that has the student on its roster."""
    session = (await db.execute(
        select(TutoringSession)
        .join(
            SessionStudent,
            (SessionStudent.session_id == TutoringSession.id)
            & (SessionStudent.tenant_id == TutoringSession.tenant_id),
        )
        .where(
            TutoringSession.id == session_id,
            TutoringSession.tenant_id == tenant_id,
            SessionStudent.student_id == student_id,
        )
    )).scalar_one_or_none()
    if session is None:
        raise NotFound("Session not found")
    return session


async def get_session(db: AsyncSession, tenant_id: UUID, session_id: UUID) -> TutoringSession:
    session = (await db.execute(
        select(TutoringSession).where(
            TutoringSession.id == session_id,
            TutoringSession.tenant_id == tenant_id,
        )
    )).scalar_one_or_none()
    if session is None:
        raise NotFound("Session not found")
    return session


def assert_session_upcoming(session: TutoringSession, now: datetime) -> None:
    if ensure_utc(session.start_at) <= now:
        logger.warning("session %s is not upcoming (start_at=%s)", session.id, session.start_at)
        raise Forbidden(
            "Session has already started",
            reason=REASON_SESSION_NOT_UPCOMING,
            details={"rule": REASON_SESSION_NOT_UPCOMING},
        )


async def assert_no_existing_request(
    db: AsyncSession,
    tenant_id: UUID,
    parent_id: UUID,
    session_id: UUID,
    student_id: UUID,
) -> None:
    existing = await store.find_for_session_student(db, tenant_id, session_id, student_id)
    if existing is None:
        return
    err = transition_conflict(Action.CREATE, AbsenceRequestStatus(existing.status))
    if existing.parent_id == parent_id:
        # Owner gets the id back so a WITHDRAWN row can be resubmitted
        err.details["request_id"] = str(existing.id)
    raise err


async def check_create_eligibility(
    db: AsyncSession,
    tenant_id: UUID,
    parent_id: UUID,
    student_id: UUID,
    session_id: UUID,
    now: datetime,
) -> TutoringSession:
    await assert_parent_linked(db, tenant_id, parent_id, student_id)
    session = await get_roster_session(db, tenant_id, session_id, student_id)
    assert_session_upcoming(session, now)
    await assert_no_existing_request(db, tenant_id, parent_id, session_id, student_id)
    return session
