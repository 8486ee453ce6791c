from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel


class AuditEventResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    actor_type: str
    actor_id: Optional[UUID] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[UUID] = None
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    reason_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    occurred_at: datetime

    class Config:
        from_attributes = True
