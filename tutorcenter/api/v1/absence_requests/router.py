from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.rbac import REQUEST_READ_ALL, REQUEST_RESOLVE, require_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from .schemas import AbsenceRequestListItem, AbsenceRequestResolve, AbsenceRequestResponse, AdminRequestPage
from . import service

router = APIRouter(prefix="/api/v1/requests", tags=["requests"])


@router.get("", response_model=AdminRequestPage)
async def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(REQUEST_READ_ALL)),
) -> AdminRequestPage:
    """Absence request inbox for staff, newest first."""
    try:
        return await service.list_requests(db, ctx, status_filter, page=page, page_size=page_size)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/{request_id}", response_model=AbsenceRequestListItem)
async def get_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(REQUEST_READ_ALL)),
) -> AbsenceRequestListItem:
    try:
        return await service.get_request_detail(db, ctx, request_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/{request_id}/resolve", response_model=AbsenceRequestResponse)
async def resolve_request(
    request_id: UUID,
    payload: AbsenceRequestResolve,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(REQUEST_RESOLVE)),
) -> AbsenceRequestResponse:
    """Approve or decline a pending request. Owner/Admin only."""
    try:
        return await service.resolve_request(db, ctx, request_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
