from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.rbac import AUDIT_READ, require_capability
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.db.session import get_db

from .schemas import AuditEventResponse
from . import service

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get("", response_model=List[AuditEventResponse])
async def list_audit_events(
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(AUDIT_READ)),
) -> List[AuditEventResponse]:
    """List audit events for the tenant. Metadata is already redacted at write time."""
    return await service.list_audit_events(
        db,
        ctx.tenant_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        limit=limit,
    )
