from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tutorcenter.core.enums import AttendanceStatus


class SessionInfo(BaseModel):
    id: UUID
    tutor_id: UUID
    start_at: datetime
    end_at: datetime
    session_type: str
    timezone: str


class RosterStudent(BaseModel):
    id: UUID
    first_name: str
    last_name: str


class PersistedAttendance(BaseModel):
    status: str
    note: Optional[str] = None
    parent_visible_note: Optional[str] = None
    marked_at: datetime
    marked_by_user_id: UUID


class AbsenceRequestProjection(BaseModel):
    """Staff-safe view of an absence request. Never carries the parent's message."""

    request_id: UUID
    status: str


class AutoAssist(BaseModel):
    """Banner and suggestion shown next to the attendance selector. Not persisted."""

    banner: Optional[str] = None  # PENDING | APPROVED | DECLINED
    suggested_status: Optional[AttendanceStatus] = None
    explanation_code: Optional[str] = None


class RosterRow(BaseModel):
    student: RosterStudent
    attendance: Optional[PersistedAttendance] = None  # None means "unset"
    absence_request: Optional[AbsenceRequestProjection] = None
    auto_assist: AutoAssist
    # Initial form value: persisted status if any, else the suggestion, else None
    selected_status: Optional[str] = None


class SessionAttendanceView(BaseModel):
    session: SessionInfo
    roster: List[RosterRow]


class SuggestionNotice(BaseModel):
    code: str
    message: str


class SuggestionMeta(BaseModel):
    attendance_exists: bool
    notice: Optional[SuggestionNotice] = None


class AttendanceSuggestion(BaseModel):
    session_id: UUID
    student_id: UUID
    absence_request: Optional[AbsenceRequestProjection] = None
    suggested: AutoAssist
    meta: SuggestionMeta


class AttendanceMark(BaseModel):
    student_id: UUID
    status: AttendanceStatus
    note: Optional[str] = Field(None, max_length=1000)
    parent_visible_note: Optional[str] = Field(None, max_length=1000)


class AttendanceSave(BaseModel):
    items: List[AttendanceMark] = Field(..., min_length=1)
