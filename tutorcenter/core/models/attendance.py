import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.db.session import Base


class Attendance(Base):
    """Persisted attendance: one per student per session. Written only by an explicit staff save."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("tenant_id", "session_id", "student_id", name="uq_attendance_session_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False)  # PRESENT, ABSENT, LATE, EXCUSED
    note = Column(Text, nullable=True)
    # Shown to linked parents; note stays staff-only
    parent_visible_note = Column(Text, nullable=True)
    marked_by_user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    marked_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    marker = relationship("User", foreign_keys=[marked_by_user_id])
