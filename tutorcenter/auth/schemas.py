from uuid import UUID

from pydantic import BaseModel

from tutorcenter.core.enums import Role


class RequestContext(BaseModel):
    """Explicit caller bundle passed to every service operation.
    caller_id is a staff user id for Owner/Admin/Tutor and a parent id for Parent.
    """

    tenant_id: UUID
    caller_id: UUID
    role: Role
