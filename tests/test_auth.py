import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.models import Parent
from tutorcenter.auth.rbac import (
    ATTENDANCE_WRITE,
    PORTAL_REQUEST,
    REQUEST_RESOLVE,
    ROLE_CAPABILITIES,
    has_capability,
)
from tutorcenter.auth.security import create_access_token, decode_access_token
from tutorcenter.core.enums import Role

from factories import World


def test_every_role_has_capabilities() -> None:
    assert set(ROLE_CAPABILITIES) == set(Role)
    assert has_capability(Role.OWNER, REQUEST_RESOLVE)
    assert has_capability(Role.ADMIN, REQUEST_RESOLVE)
    assert not has_capability(Role.TUTOR, REQUEST_RESOLVE)
    assert has_capability(Role.TUTOR, ATTENDANCE_WRITE)
    assert not has_capability(Role.PARENT, ATTENDANCE_WRITE)
    assert [r for r in Role if has_capability(r, PORTAL_REQUEST)] == [Role.PARENT]


def test_access_token_round_trip() -> None:
    token = create_access_token(subject={"sub": "abc", "tenant_id": "t1", "role": "Admin"})
    payload = decode_access_token(token)
    assert payload["sub"] == "abc"
    assert payload["role"] == "Admin"
    assert "exp" in payload


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient, world: World) -> None:
    token = create_access_token(
        subject={"sub": str(world.admin_id), "tenant_id": str(world.tenant_id), "role": "Admin"},
        expires_minutes=-1,
    )
    response = await client.get("/api/v1/requests", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_with_unknown_role_rejected(client: AsyncClient, world: World) -> None:
    token = create_access_token(
        subject={"sub": str(world.admin_id), "tenant_id": str(world.tenant_id), "role": "SUPER_ADMIN"}
    )
    response = await client.get("/api/v1/requests", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_parent_rejected(
    client: AsyncClient, db_session: AsyncSession, world: World, parent_headers
) -> None:
    await db_session.execute(update(Parent).where(Parent.id == world.parent_id).values(status="INACTIVE"))
    await db_session.commit()

    response = await client.get("/api/v1/portal/requests", headers=parent_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_wrong_role_gets_forbidden_body(client: AsyncClient, tutor_headers) -> None:
    response = await client.get("/api/v1/audit", headers=tutor_headers)
    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "FORBIDDEN"
    assert detail["reason"] == "ROLE_NOT_ALLOWED"
