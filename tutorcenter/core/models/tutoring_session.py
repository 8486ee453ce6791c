"""Scheduled tutoring sessions and their rosters. Read-only from the absence workflow."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.db.session import Base


class TutoringSession(Base):
    __tablename__ = "sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    tutor_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    session_type = Column(String(20), nullable=False, default="GROUP")  # ONE_ON_ONE, GROUP, CLASS
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    timezone = Column(String(100), nullable=False, default="UTC")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tutor = relationship("User", foreign_keys=[tutor_id])
    roster = relationship("SessionStudent", back_populates="session", cascade="all, delete-orphan")


class SessionStudent(Base):
    __tablename__ = "session_students"
    __table_args__ = (
        UniqueConstraint("tenant_id", "session_id", "student_id", name="uq_session_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)

    session = relationship("TutoringSession", back_populates="roster")
    student = relationship("Student")
