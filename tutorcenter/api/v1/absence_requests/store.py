"""
Absence request store: the only module that writes absence_requests rows.

Every status change goes through guarded_transition, a single UPDATE whose WHERE clause
carries the expected current status. Concurrent writers therefore race inside the database,
not in application code: exactly one compare-and-set matches, the rest see zero rows.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.enums import AbsenceRequestStatus
from tutorcenter.core.exceptions import REASON_REQUEST_DUPLICATE, Conflict, InternalError, NotFound, ServiceError
from tutorcenter.core.models import AbsenceRequest

from .state_machine import Action, ensure_transition, is_allowed, transition_conflict


async def get_request(
    db: AsyncSession,
    tenant_id: UUID,
    request_id: UUID,
    parent_id: Optional[UUID] = None,
    *,
    refresh: bool = False,
) -> Optional[AbsenceRequest]:
    """Tenant-scoped lookup; with parent_id, also owner-scoped. refresh bypasses the identity map."""
    q = select(AbsenceRequest).where(
        AbsenceRequest.id == request_id,
        AbsenceRequest.tenant_id == tenant_id,
    )
    if parent_id is not None:
        q = q.where(AbsenceRequest.parent_id == parent_id)
    if refresh:
        q = q.execution_options(populate_existing=True)
    return (await db.execute(q)).scalar_one_or_none()


async def find_for_session_student(
    db: AsyncSession,
    tenant_id: UUID,
    session_id: UUID,
    student_id: UUID,
) -> Optional[AbsenceRequest]:
    return (await db.execute(
        select(AbsenceRequest).where(
            AbsenceRequest.tenant_id == tenant_id,
            AbsenceRequest.session_id == session_id,
            AbsenceRequest.student_id == student_id,
        )
    )).scalar_one_or_none()


async def insert_request(
    db: AsyncSession,
    *,
    tenant_id: UUID,
    parent_id: UUID,
    student_id: UUID,
    session_id: UUID,
    reason_code: str,
    message: Optional[str],
    now: datetime,
) -> AbsenceRequest:
    """Insert a new PENDING row. The (tenant, session, student) unique constraint is the final word on duplicates."""
    ensure_transition(Action.CREATE, None, AbsenceRequestStatus.PENDING)
    req = AbsenceRequest(
        tenant_id=tenant_id,
        parent_id=parent_id,
        student_id=student_id,
        session_id=session_id,
        status=AbsenceRequestStatus.PENDING.value,
        reason_code=reason_code,
        message=message,
        created_at=now,
        updated_at=now,
    )
    db.add(req)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # Lost the race to another guardian: report the winner's row like the eligibility check does
        existing = await find_for_session_student(db, tenant_id, session_id, student_id)
        if existing is None:
            raise Conflict(
                "Absence request already exists for this session and student",
                reason=REASON_REQUEST_DUPLICATE,
            )
        err = transition_conflict(Action.CREATE, AbsenceRequestStatus(existing.status))
        if existing.parent_id == parent_id:
            err.details["request_id"] = str(existing.id)
        raise err
    return req


async def guarded_transition(
    db: AsyncSession,
    tenant_id: UUID,
    request_id: UUID,
    from_status: AbsenceRequestStatus,
    to_status: AbsenceRequestStatus,
    now: datetime,
    values: Optional[Dict[str, Any]] = None,
    parent_id: Optional[UUID] = None,
) -> bool:
    """
    Compare-and-set on status in one statement:

        UPDATE absence_requests SET status = :to, ...
        WHERE id = :id AND tenant_id = :tenant AND status = :from [AND parent_id = :parent]

    Returns True when the row moved. False means the row is missing, owned by someone else,
    or no longer in from_status; use classify_failed_transition to tell which.
    """
    if not is_allowed(from_status, to_status):
        # A caller asked for an edge that is not on the graph
        raise InternalError(f"Illegal absence request transition {from_status.value} -> {to_status.value}")

    conditions = [
        AbsenceRequest.id == request_id,
        AbsenceRequest.tenant_id == tenant_id,
        AbsenceRequest.status == from_status.value,
    ]
    if parent_id is not None:
        conditions.append(AbsenceRequest.parent_id == parent_id)

    stmt = (
        update(AbsenceRequest)
        .where(*conditions)
        .values(status=to_status.value, updated_at=now, **(values or {}))
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def classify_failed_transition(
    db: AsyncSession,
    tenant_id: UUID,
    request_id: UUID,
    action: Action,
    parent_id: Optional[UUID] = None,
) -> ServiceError:
    """Re-read after a zero-row guarded update and return the precise error to raise."""
    current = await get_request(db, tenant_id, request_id, parent_id, refresh=True)
    if current is None:
        # Missing, other tenant, or other parent: all look the same from outside
        return NotFound("Request not found")
    return transition_conflict(action, AbsenceRequestStatus(current.status))
