from tutorcenter.auth.models import Parent, User
from tutorcenter.core.models.tenant import Tenant
from tutorcenter.core.models.student import Student, StudentParent
from tutorcenter.core.models.tutoring_session import SessionStudent, TutoringSession
from tutorcenter.core.models.attendance import Attendance
from tutorcenter.core.models.absence_request import AbsenceRequest
from tutorcenter.core.models.audit_event import AuditEvent

__all__ = [
    "AbsenceRequest",
    "Attendance",
    "AuditEvent",
    "Parent",
    "SessionStudent",
    "Student",
    "StudentParent",
    "Tenant",
    "TutoringSession",
    "User",
]
