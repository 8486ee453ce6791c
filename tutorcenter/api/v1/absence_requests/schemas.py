from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tutorcenter.core.config import settings
from tutorcenter.core.enums import AbsenceReasonCode


# ----- Parent portal -----
class AbsenceRequestCreate(BaseModel):
    """Create an absence request. parent_id comes from the caller context, never from the body."""

    session_id: UUID
    student_id: UUID
    reason_code: AbsenceReasonCode
    message: Optional[str] = Field(None, max_length=settings.absence_message_max_length)

    class Config:
        extra = "forbid"


class AbsenceRequestResubmit(BaseModel):
    reason_code: AbsenceReasonCode
    message: Optional[str] = Field(None, max_length=settings.absence_message_max_length)

    class Config:
        extra = "forbid"


# ----- Staff -----
class AbsenceRequestResolve(BaseModel):
    status: Literal["APPROVED", "DECLINED"]

    class Config:
        extra = "forbid"


# ----- Responses -----
class AbsenceRequestResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    parent_id: UUID
    student_id: UUID
    session_id: UUID
    status: str
    reason_code: str
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by_user_id: Optional[UUID] = None
    withdrawn_at: Optional[datetime] = None
    resubmitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionSummary(BaseModel):
    id: UUID
    start_at: datetime
    end_at: datetime
    session_type: str
    timezone: str


class StudentSummary(BaseModel):
    id: UUID
    first_name: str
    last_name: str


class AbsenceRequestListItem(AbsenceRequestResponse):
    session: Optional[SessionSummary] = None
    student: Optional[StudentSummary] = None


class PortalRequestList(BaseModel):
    items: List[AbsenceRequestListItem]
    take: int
    skip: int


class AdminRequestPage(BaseModel):
    items: List[AbsenceRequestListItem]
    page: int
    page_size: int
    total: int
