"""Seed data and token helpers shared by the test modules."""

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.schemas import RequestContext
from tutorcenter.auth.security import create_access_token
from tutorcenter.core.enums import Role
from tutorcenter.core.models import (
    Parent,
    SessionStudent,
    Student,
    StudentParent,
    Tenant,
    TutoringSession,
    User,
)
from tutorcenter.core.timeutils import utcnow


@dataclass
class World:
    """Ids of the seeded rows. Plain ids so tests never touch expired ORM objects."""

    tenant_id: uuid.UUID
    other_tenant_id: uuid.UUID
    owner_id: uuid.UUID
    admin_id: uuid.UUID
    tutor_id: uuid.UUID
    other_tutor_id: uuid.UUID
    parent_id: uuid.UUID
    other_parent_id: uuid.UUID
    foreign_parent_id: uuid.UUID
    student_id: uuid.UUID
    sibling_id: uuid.UUID
    unlinked_student_id: uuid.UUID
    upcoming_session_id: uuid.UUID
    past_session_id: uuid.UUID
    other_tutor_session_id: uuid.UUID
    foreign_session_id: uuid.UUID


async def seed_world(db: AsyncSession) -> World:
    """Two tenants; in the main one a linked parent with two children on tomorrow's and yesterday's sessions."""
    now = utcnow()
    ids: Dict[str, uuid.UUID] = {name: uuid.uuid4() for name in World.__dataclass_fields__}

    db.add_all([
        Tenant(id=ids["tenant_id"], slug="north", name="North Tutoring"),
        Tenant(id=ids["other_tenant_id"], slug="south", name="South Tutoring"),
    ])
    await db.flush()
    db.add_all([
        User(id=ids["owner_id"], tenant_id=ids["tenant_id"], name="Olive Owner", email="owner@north.test", role="Owner"),
        User(id=ids["admin_id"], tenant_id=ids["tenant_id"], name="Adam Admin", email="admin@north.test", role="Admin"),
        User(id=ids["tutor_id"], tenant_id=ids["tenant_id"], name="Tess Tutor", email="tutor@north.test", role="Tutor"),
        User(id=ids["other_tutor_id"], tenant_id=ids["tenant_id"], name="Tom Tutor", email="tom@north.test", role="Tutor"),
        Parent(id=ids["parent_id"], tenant_id=ids["tenant_id"], first_name="Pat", last_name="Lee", email="pat@home.test"),
        Parent(id=ids["other_parent_id"], tenant_id=ids["tenant_id"], first_name="Sam", last_name="Lee", email="sam@home.test"),
        Parent(id=ids["foreign_parent_id"], tenant_id=ids["other_tenant_id"], first_name="Kim", last_name="Ray", email="kim@home.test"),
        Student(id=ids["student_id"], tenant_id=ids["tenant_id"], first_name="Ava", last_name="Lee"),
        Student(id=ids["sibling_id"], tenant_id=ids["tenant_id"], first_name="Ben", last_name="Lee"),
        Student(id=ids["unlinked_student_id"], tenant_id=ids["tenant_id"], first_name="Cy", last_name="Park"),
    ])
    await db.flush()
    db.add_all([
        StudentParent(tenant_id=ids["tenant_id"], student_id=ids["student_id"], parent_id=ids["parent_id"]),
        StudentParent(tenant_id=ids["tenant_id"], student_id=ids["sibling_id"], parent_id=ids["parent_id"]),
        # Second guardian of the same child
        StudentParent(tenant_id=ids["tenant_id"], student_id=ids["student_id"], parent_id=ids["other_parent_id"]),
        TutoringSession(
            id=ids["upcoming_session_id"], tenant_id=ids["tenant_id"], tutor_id=ids["tutor_id"],
            start_at=now + timedelta(days=1), end_at=now + timedelta(days=1, hours=1),
        ),
        TutoringSession(
            id=ids["past_session_id"], tenant_id=ids["tenant_id"], tutor_id=ids["tutor_id"],
            start_at=now - timedelta(days=1), end_at=now - timedelta(days=1) + timedelta(hours=1),
        ),
        TutoringSession(
            id=ids["other_tutor_session_id"], tenant_id=ids["tenant_id"], tutor_id=ids["other_tutor_id"],
            start_at=now + timedelta(days=2), end_at=now + timedelta(days=2, hours=1),
        ),
        TutoringSession(
            id=ids["foreign_session_id"], tenant_id=ids["other_tenant_id"], tutor_id=ids["tutor_id"],
            start_at=now + timedelta(days=1), end_at=now + timedelta(days=1, hours=1),
        ),
    ])
    await db.flush()
    roster = [
        (ids["upcoming_session_id"], ids["student_id"]),
        (ids["upcoming_session_id"], ids["sibling_id"]),
        (ids["upcoming_session_id"], ids["unlinked_student_id"]),
        (ids["past_session_id"], ids["student_id"]),
        (ids["other_tutor_session_id"], ids["student_id"]),
    ]
    db.add_all([
        SessionStudent(tenant_id=ids["tenant_id"], session_id=session_id, student_id=student_id)
        for session_id, student_id in roster
    ])
    db.add(SessionStudent(
        tenant_id=ids["other_tenant_id"], session_id=ids["foreign_session_id"], student_id=ids["student_id"],
    ))
    await db.commit()
    return World(**ids)


def token_for(caller_id: uuid.UUID, tenant_id: uuid.UUID, role: Role) -> str:
    return create_access_token(
        subject={"sub": str(caller_id), "tenant_id": str(tenant_id), "role": role.value}
    )


def auth_headers(caller_id: uuid.UUID, tenant_id: uuid.UUID, role: Role) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(caller_id, tenant_id, role)}"}


def context(caller_id: uuid.UUID, tenant_id: uuid.UUID, role: Role) -> RequestContext:
    return RequestContext(tenant_id=tenant_id, caller_id=caller_id, role=role)
