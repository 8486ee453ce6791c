from typing import Dict, FrozenSet

from fastapi import Depends, HTTPException, status

from tutorcenter.auth.dependencies import get_request_context
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.core.enums import Role

# Capabilities
REQUEST_RESOLVE = "request.resolve"
REQUEST_READ_ALL = "request.read_all"
PORTAL_REQUEST = "portal.request"
ATTENDANCE_READ = "attendance.read"
ATTENDANCE_WRITE = "attendance.write"
AUDIT_READ = "audit.read"

ROLE_CAPABILITIES: Dict[Role, FrozenSet[str]] = {
    Role.OWNER: frozenset({REQUEST_RESOLVE, REQUEST_READ_ALL, ATTENDANCE_READ, ATTENDANCE_WRITE, AUDIT_READ}),
    Role.ADMIN: frozenset({REQUEST_RESOLVE, REQUEST_READ_ALL, ATTENDANCE_READ, ATTENDANCE_WRITE, AUDIT_READ}),
    Role.TUTOR: frozenset({ATTENDANCE_READ, ATTENDANCE_WRITE}),
    Role.PARENT: frozenset({PORTAL_REQUEST}),
}

_missing = set(Role) - set(ROLE_CAPABILITIES)
if _missing:
    raise RuntimeError(f"Roles without a capability entry: {sorted(r.value for r in _missing)}")


def has_capability(role: Role, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES[role]


def require_capability(capability: str):
    """
    Dependency factory to enforce a capability and hand the context to the endpoint.

    Example:
        ctx: RequestContext = Depends(require_capability(REQUEST_RESOLVE))
    """

    async def _checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not has_capability(ctx.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": "Insufficient permissions", "reason": "ROLE_NOT_ALLOWED"},
            )
        return ctx

    return _checker
