"""Absence request create, resolve, withdraw, resubmit and listings, with guarded writes and audit."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorcenter.api.v1.audit import service as audit
from tutorcenter.auth.rbac import PORTAL_REQUEST, REQUEST_READ_ALL, REQUEST_RESOLVE, has_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.enums import AbsenceReasonCode, AbsenceRequestStatus, AuditActorType
from tutorcenter.core.exceptions import (
    REASON_ROLE_NOT_ALLOWED,
    Forbidden,
    NotFound,
    ValidationError,
)
from tutorcenter.core.models import AbsenceRequest
from tutorcenter.core.timeutils import ensure_utc, utcnow

from . import eligibility, store
from .schemas import (
    AbsenceRequestCreate,
    AbsenceRequestListItem,
    AbsenceRequestResponse,
    AbsenceRequestResubmit,
    AdminRequestPage,
    PortalRequestList,
    SessionSummary,
    StudentSummary,
)
from .state_machine import Action, targets, transition_conflict

logger = logging.getLogger(__name__)


def _request_to_response(r: AbsenceRequest) -> AbsenceRequestResponse:
    return AbsenceRequestResponse(
        id=r.id,
        tenant_id=r.tenant_id,
        parent_id=r.parent_id,
        student_id=r.student_id,
        session_id=r.session_id,
        status=r.status,
        reason_code=r.reason_code,
        message=r.message,
        created_at=ensure_utc(r.created_at),
        updated_at=ensure_utc(r.updated_at),
        resolved_at=ensure_utc(r.resolved_at),
        resolved_by_user_id=r.resolved_by_user_id,
        withdrawn_at=ensure_utc(r.withdrawn_at),
        resubmitted_at=ensure_utc(r.resubmitted_at),
    )


def _request_to_list_item(r: AbsenceRequest) -> AbsenceRequestListItem:
    base = _request_to_response(r)
    session = student = None
    if r.session is not None:
        session = SessionSummary(
            id=r.session.id,
            start_at=ensure_utc(r.session.start_at),
            end_at=ensure_utc(r.session.end_at),
            session_type=r.session.session_type,
            timezone=r.session.timezone,
        )
    if r.student is not None:
        student = StudentSummary(id=r.student.id, first_name=r.student.first_name, last_name=r.student.last_name)
    return AbsenceRequestListItem(**base.model_dump(), session=session, student=student)


def _require(ctx: RequestContext, capability: str) -> None:
    if not has_capability(ctx.role, capability):
        raise Forbidden("Insufficient permissions", reason=REASON_ROLE_NOT_ALLOWED)


def _clean_message(message: Optional[str]) -> Optional[str]:
    if message is None:
        return None
    message = message.strip()
    return message or None


def _clean_reason(reason_code) -> str:
    try:
        return AbsenceReasonCode(reason_code).value
    except ValueError:
        raise ValidationError("Invalid reason code", details={"field": "reason_code"})


def _audit_metadata(r: AbsenceRequest, from_status: Optional[str], to_status: str) -> dict:
    # Message length only; the text itself never reaches the audit trail
    return {
        "sessionId": r.session_id,
        "studentId": r.student_id,
        "reasonCode": r.reason_code,
        "messageLength": len(r.message) if r.message else 0,
        "fromStatus": from_status,
        "toStatus": to_status,
    }


def parse_status_filter(value: Optional[str]) -> Optional[AbsenceRequestStatus]:
    if value is None or not value.strip():
        return None
    try:
        return AbsenceRequestStatus(value.strip())
    except ValueError:
        raise ValidationError("Invalid status filter", details={"field": "status"})


async def create_request(
    db: AsyncSession,
    ctx: RequestContext,
    payload: AbsenceRequestCreate,
    now: Optional[datetime] = None,
) -> AbsenceRequestResponse:
    """Create a PENDING absence request for a linked student's upcoming session."""
    _require(ctx, PORTAL_REQUEST)
    now = now or utcnow()
    reason_code = _clean_reason(payload.reason_code)

    await eligibility.check_create_eligibility(
        db, ctx.tenant_id, ctx.caller_id, payload.student_id, payload.session_id, now
    )
    req = await store.insert_request(
        db,
        tenant_id=ctx.tenant_id,
        parent_id=ctx.caller_id,
        student_id=payload.student_id,
        session_id=payload.session_id,
        reason_code=reason_code,
        message=_clean_message(payload.message),
        now=now,
    )
    await audit.write_audit_event(
        db,
        ctx.tenant_id,
        AuditActorType.PARENT,
        ctx.caller_id,
        audit.ABSENCE_REQUEST_CREATED,
        entity_type=audit.ENTITY_REQUEST,
        entity_id=req.id,
        to_status=AbsenceRequestStatus.PENDING.value,
        reason_code=req.reason_code,
        metadata=_audit_metadata(req, None, AbsenceRequestStatus.PENDING.value),
    )
    await db.commit()
    await db.refresh(req)
    logger.info("absence request %s created tenant=%s session=%s", req.id, ctx.tenant_id, req.session_id)
    return _request_to_response(req)


async def resolve_request(
    db: AsyncSession,
    ctx: RequestContext,
    request_id: UUID,
    decision: AbsenceRequestStatus,
    now: Optional[datetime] = None,
) -> AbsenceRequestResponse:
    """Approve or decline a PENDING request. Concurrent resolutions: first commit wins, the rest get Conflict.
    No session timing restriction applies to staff.
    """
    _require(ctx, REQUEST_RESOLVE)
    try:
        decision = AbsenceRequestStatus(decision)
    except ValueError:
        decision = None
    if decision not in targets(Action.RESOLVE):
        raise ValidationError("Decision must be APPROVED or DECLINED", details={"field": "status"})
    now = now or utcnow()

    moved = await store.guarded_transition(
        db,
        ctx.tenant_id,
        request_id,
        AbsenceRequestStatus.PENDING,
        decision,
        now,
        values={"resolved_at": now, "resolved_by_user_id": ctx.caller_id},
    )
    if not moved:
        err = await store.classify_failed_transition(db, ctx.tenant_id, request_id, Action.RESOLVE)
        await db.rollback()
        logger.warning("resolve %s rejected tenant=%s reason=%s", request_id, ctx.tenant_id, err.reason or err.code)
        raise err

    req = await store.get_request(db, ctx.tenant_id, request_id, refresh=True)
    await audit.write_audit_event(
        db,
        ctx.tenant_id,
        AuditActorType.USER,
        ctx.caller_id,
        audit.ABSENCE_REQUEST_RESOLVED,
        entity_type=audit.ENTITY_REQUEST,
        entity_id=req.id,
        from_status=AbsenceRequestStatus.PENDING.value,
        to_status=decision.value,
        reason_code=req.reason_code,
        metadata=_audit_metadata(req, AbsenceRequestStatus.PENDING.value, decision.value),
    )
    await db.commit()
    logger.info("absence request %s PENDING -> %s tenant=%s", request_id, decision.value, ctx.tenant_id)
    return _request_to_response(req)


async def _load_owned(db: AsyncSession, ctx: RequestContext, request_id: UUID) -> AbsenceRequest:
    req = await store.get_request(db, ctx.tenant_id, request_id, parent_id=ctx.caller_id)
    if req is None:
        # Same answer for other tenants and other parents
        raise NotFound("Request not found")
    return req


async def withdraw_request(
    db: AsyncSession,
    ctx: RequestContext,
    request_id: UUID,
    now: Optional[datetime] = None,
) -> AbsenceRequestResponse:
    """Parent withdraws their own PENDING request before the session starts."""
    _require(ctx, PORTAL_REQUEST)
    now = now or utcnow()

    req = await _load_owned(db, ctx, request_id)
    if req.status != AbsenceRequestStatus.PENDING.value:
        raise transition_conflict(Action.WITHDRAW, AbsenceRequestStatus(req.status))
    session = await eligibility.get_session(db, ctx.tenant_id, req.session_id)
    eligibility.assert_session_upcoming(session, now)

    moved = await store.guarded_transition(
        db,
        ctx.tenant_id,
        request_id,
        AbsenceRequestStatus.PENDING,
        AbsenceRequestStatus.WITHDRAWN,
        now,
        values={"withdrawn_at": now},
        parent_id=ctx.caller_id,
    )
    if not moved:
        err = await store.classify_failed_transition(db, ctx.tenant_id, request_id, Action.WITHDRAW, ctx.caller_id)
        await db.rollback()
        logger.warning("withdraw %s rejected tenant=%s reason=%s", request_id, ctx.tenant_id, err.reason or err.code)
        raise err

    req = await store.get_request(db, ctx.tenant_id, request_id, refresh=True)
    await audit.write_audit_event(
        db,
        ctx.tenant_id,
        AuditActorType.PARENT,
        ctx.caller_id,
        audit.ABSENCE_REQUEST_WITHDRAWN,
        entity_type=audit.ENTITY_REQUEST,
        entity_id=req.id,
        from_status=AbsenceRequestStatus.PENDING.value,
        to_status=AbsenceRequestStatus.WITHDRAWN.value,
        reason_code=req.reason_code,
        metadata=_audit_metadata(req, AbsenceRequestStatus.PENDING.value, AbsenceRequestStatus.WITHDRAWN.value),
    )
    await db.commit()
    logger.info("absence request %s PENDING -> WITHDRAWN tenant=%s", request_id, ctx.tenant_id)
    return _request_to_response(req)


async def resubmit_request(
    db: AsyncSession,
    ctx: RequestContext,
    request_id: UUID,
    payload: AbsenceRequestResubmit,
    now: Optional[datetime] = None,
) -> AbsenceRequestResponse:
    """Reopen a WITHDRAWN request on the same row with a new reason and message."""
    _require(ctx, PORTAL_REQUEST)
    now = now or utcnow()
    reason_code = _clean_reason(payload.reason_code)

    req = await _load_owned(db, ctx, request_id)
    if req.status != AbsenceRequestStatus.WITHDRAWN.value:
        raise transition_conflict(Action.RESUBMIT, AbsenceRequestStatus(req.status))
    session = await eligibility.get_session(db, ctx.tenant_id, req.session_id)
    eligibility.assert_session_upcoming(session, now)

    # resolved_at / resolved_by_user_id are left alone: a WITHDRAWN row never reached resolution
    moved = await store.guarded_transition(
        db,
        ctx.tenant_id,
        request_id,
        AbsenceRequestStatus.WITHDRAWN,
        AbsenceRequestStatus.PENDING,
        now,
        values={
            "resubmitted_at": now,
            "reason_code": reason_code,
            "message": _clean_message(payload.message),
        },
        parent_id=ctx.caller_id,
    )
    if not moved:
        err = await store.classify_failed_transition(db, ctx.tenant_id, request_id, Action.RESUBMIT, ctx.caller_id)
        await db.rollback()
        logger.warning("resubmit %s rejected tenant=%s reason=%s", request_id, ctx.tenant_id, err.reason or err.code)
        raise err

    req = await store.get_request(db, ctx.tenant_id, request_id, refresh=True)
    await audit.write_audit_event(
        db,
        ctx.tenant_id,
        AuditActorType.PARENT,
        ctx.caller_id,
        audit.ABSENCE_REQUEST_RESUBMITTED,
        entity_type=audit.ENTITY_REQUEST,
        entity_id=req.id,
        from_status=AbsenceRequestStatus.WITHDRAWN.value,
        to_status=AbsenceRequestStatus.PENDING.value,
        reason_code=req.reason_code,
        metadata=_audit_metadata(req, AbsenceRequestStatus.WITHDRAWN.value, AbsenceRequestStatus.PENDING.value),
    )
    await db.commit()
    logger.info("absence request %s WITHDRAWN -> PENDING tenant=%s", request_id, ctx.tenant_id)
    return _request_to_response(req)


async def list_parent_requests(
    db: AsyncSession,
    ctx: RequestContext,
    status_filter: Optional[str] = None,
    take: int = 50,
    skip: int = 0,
) -> PortalRequestList:
    """Requests created by the calling parent, newest first."""
    _require(ctx, PORTAL_REQUEST)
    status = parse_status_filter(status_filter)
    q = (
        select(AbsenceRequest)
        .options(selectinload(AbsenceRequest.session), selectinload(AbsenceRequest.student))
        .where(
            AbsenceRequest.tenant_id == ctx.tenant_id,
            AbsenceRequest.parent_id == ctx.caller_id,
        )
    )
    if status:
        q = q.where(AbsenceRequest.status == status.value)
    q = q.order_by(AbsenceRequest.created_at.desc()).offset(skip).limit(take)
    rows = (await db.execute(q)).scalars().all()
    return PortalRequestList(items=[_request_to_list_item(r) for r in rows], take=take, skip=skip)


async def list_requests(
    db: AsyncSession,
    ctx: RequestContext,
    status_filter: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> AdminRequestPage:
    """Staff inbox: every request in the tenant, optionally filtered by status."""
    _require(ctx, REQUEST_READ_ALL)
    status = parse_status_filter(status_filter)
    conditions = [AbsenceRequest.tenant_id == ctx.tenant_id]
    if status:
        conditions.append(AbsenceRequest.status == status.value)

    total = (await db.execute(select(func.count(AbsenceRequest.id)).where(*conditions))).scalar_one()
    rows = (await db.execute(
        select(AbsenceRequest)
        .options(selectinload(AbsenceRequest.session), selectinload(AbsenceRequest.student))
        .where(*conditions)
        .order_by(AbsenceRequest.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )).scalars().all()
    return AdminRequestPage(
        items=[_request_to_list_item(r) for r in rows],
        page=page,
        page_size=page_size,
        total=total,
    )


async def get_request_detail(
    db: AsyncSession,
    ctx: RequestContext,
    request_id: UUID,
) -> AbsenceRequestListItem:
    _require(ctx, REQUEST_READ_ALL)
    req = (await db.execute(
        select(AbsenceRequest)
        .options(selectinload(AbsenceRequest.session), selectinload(AbsenceRequest.student))
        .where(AbsenceRequest.id == request_id, AbsenceRequest.tenant_id == ctx.tenant_id)
    )).scalar_one_or_none()
    if req is None:
        raise NotFound("Request not found")
    return _request_to_list_item(req)
