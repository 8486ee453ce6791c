"""
Audit emitter: append sanitized audit events. Call on every state change, inside the
transaction that performs it.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.enums import AuditActorType
from tutorcenter.core.models import AuditEvent
from tutorcenter.core.timeutils import utcnow

from .schemas import AuditEventResponse

logger = logging.getLogger(__name__)

# Actions
ABSENCE_REQUEST_CREATED = "ABSENCE_REQUEST_CREATED"
ABSENCE_REQUEST_RESOLVED = "ABSENCE_REQUEST_RESOLVED"
ABSENCE_REQUEST_WITHDRAWN = "ABSENCE_REQUEST_WITHDRAWN"
ABSENCE_REQUEST_RESUBMITTED = "ABSENCE_REQUEST_RESUBMITTED"
ATTENDANCE_UPDATED = "ATTENDANCE_UPDATED"

# Entity types
ENTITY_REQUEST = "REQUEST"
ENTITY_ATTENDANCE = "ATTENDANCE"

MAX_METADATA_KEYS = 20
MAX_STRING_LENGTH = 200
MAX_NESTED_DEPTH = 3
DISALLOWED_KEY_PATTERN = re.compile(r"(message|access_?code|password|token|secret|hash)", re.IGNORECASE)
# messageLength is the sanctioned stand-in for message content
ALLOWED_KEYS = frozenset({"messageLength"})


def _sanitize_value(value: Any, depth: int = 0) -> Any:
    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        trimmed = value.strip()
        if len(trimmed) > MAX_STRING_LENGTH:
            return {"length": len(trimmed)}
        return trimmed
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        if depth >= MAX_NESTED_DEPTH:
            return []
        return [_sanitize_value(v, depth + 1) for v in list(value)[:MAX_METADATA_KEYS]]
    if isinstance(value, dict):
        if depth >= MAX_NESTED_DEPTH:
            return {}
        cleaned: Dict[str, Any] = {}
        for key, entry in list(value.items())[:MAX_METADATA_KEYS]:
            key = str(key)
            if key not in ALLOWED_KEYS and DISALLOWED_KEY_PATTERN.search(key):
                continue
            cleaned[key] = _sanitize_value(entry, depth + 1)
        return cleaned
    # Enums and anything else are stored by their string form
    return str(getattr(value, "value", value))


def sanitize_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not metadata:
        return None
    cleaned = _sanitize_value(metadata, 0)
    return cleaned or None


async def write_audit_event(
    db: AsyncSession,
    tenant_id: UUID,
    actor_type: AuditActorType,
    actor_id: Optional[UUID],
    action: str,
    *,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    reason_code: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    """Append one audit event. Caller must commit."""
    entry = AuditEvent(
        tenant_id=tenant_id,
        actor_type=actor_type.value,
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        from_status=from_status,
        to_status=to_status,
        reason_code=reason_code,
        event_metadata=sanitize_metadata(metadata),
        occurred_at=utcnow(),
    )
    db.add(entry)
    logger.debug("audit %s %s/%s tenant=%s", action, entity_type, entity_id, tenant_id)
    return entry


async def list_audit_events(
    db: AsyncSession,
    tenant_id: UUID,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    action: Optional[str] = None,
    limit: int = 100,
) -> List[AuditEventResponse]:
    """Audit events for the tenant, newest first."""
    q = select(AuditEvent).where(AuditEvent.tenant_id == tenant_id)
    if entity_type:
        q = q.where(AuditEvent.entity_type == entity_type)
    if entity_id:
        q = q.where(AuditEvent.entity_id == entity_id)
    if action:
        q = q.where(AuditEvent.action == action)
    q = q.order_by(AuditEvent.occurred_at.desc()).limit(limit)
    result = await db.execute(q)
    rows = result.scalars().all()
    return [
        AuditEventResponse(
            id=e.id,
            tenant_id=e.tenant_id,
            actor_type=e.actor_type,
            actor_id=e.actor_id,
            action=e.action,
            entity_type=e.entity_type,
            entity_id=e.entity_id,
            from_status=e.from_status,
            to_status=e.to_status,
            reason_code=e.reason_code,
            metadata=e.event_metadata,
            occurred_at=e.occurred_at,
        )
        for e in rows
    ]
