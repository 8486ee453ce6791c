from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.rbac import PORTAL_REQUEST, require_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.config import settings
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from .schemas import AbsenceRequestCreate, AbsenceRequestResponse, AbsenceRequestResubmit, PortalRequestList
from . import service

router = APIRouter(prefix="/api/v1/portal/requests", tags=["portal-requests"])


@router.get("", response_model=PortalRequestList)
async def list_my_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    take: int = Query(settings.portal_page_size_default, ge=1, le=settings.portal_page_size_max),
    skip: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(PORTAL_REQUEST)),
) -> PortalRequestList:
    """List absence requests created by the current parent."""
    try:
        return await service.list_parent_requests(db, ctx, status_filter, take=take, skip=skip)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "",
    response_model=AbsenceRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    payload: AbsenceRequestCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(PORTAL_REQUEST)),
) -> AbsenceRequestResponse:
    """Request an excused absence for a linked student's upcoming session."""
    try:
        return await service.create_request(db, ctx, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/{request_id}/withdraw", response_model=AbsenceRequestResponse)
async def withdraw_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(PORTAL_REQUEST)),
) -> AbsenceRequestResponse:
    """Withdraw a pending request. Only before the session starts."""
    try:
        return await service.withdraw_request(db, ctx, request_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/{request_id}/resubmit", response_model=AbsenceRequestResponse)
async def resubmit_request(
    request_id: UUID,
    payload: AbsenceRequestResubmit = Body(...),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(PORTAL_REQUEST)),
) -> AbsenceRequestResponse:
    """Resubmit a withdrawn request with a new reason. The request keeps its id."""
    try:
        return await service.resubmit_request(db, ctx, request_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
