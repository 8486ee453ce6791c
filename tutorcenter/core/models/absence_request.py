"""Parent absence requests. One row per (tenant, session, student), reused across withdraw/resubmit."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.core.enums import AbsenceRequestStatus
from tutorcenter.db.session import Base


class AbsenceRequest(Base):
    __tablename__ = "absence_requests"
    __table_args__ = (
        UniqueConstraint("tenant_id", "session_id", "student_id", name="uq_absence_request_session_student"),
        Index("ix_absence_requests_tenant_status_created", "tenant_id", "status", "created_at"),
        Index("ix_absence_requests_tenant_parent_created", "tenant_id", "parent_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Uuid, ForeignKey("parents.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default=AbsenceRequestStatus.PENDING.value)
    reason_code = Column(String(50), nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    # Set together, once, by staff resolution only
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    withdrawn_at = Column(DateTime(timezone=True), nullable=True)
    resubmitted_at = Column(DateTime(timezone=True), nullable=True)

    parent = relationship("Parent", foreign_keys=[parent_id])
    student = relationship("Student", foreign_keys=[student_id])
    session = relationship("TutoringSession", foreign_keys=[session_id])
    resolved_by_user = relationship("User", foreign_keys=[resolved_by_user_id])
