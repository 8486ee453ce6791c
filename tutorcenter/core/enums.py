from enum import Enum


class Role(str, Enum):
    OWNER = "Owner"
    ADMIN = "Admin"
    TUTOR = "Tutor"
    PARENT = "Parent"


class AbsenceRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"


class AbsenceReasonCode(str, Enum):
    ILLNESS = "ILLNESS"
    TRAVEL = "TRAVEL"
    FAMILY = "FAMILY"
    SCHOOL_CONFLICT = "SCHOOL_CONFLICT"
    OTHER = "OTHER"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class AuditActorType(str, Enum):
    USER = "USER"
    PARENT = "PARENT"
