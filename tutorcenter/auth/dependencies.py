from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.models import Parent, User
from tutorcenter.auth.schemas import RequestContext
from tutorcenter.auth.security import decode_access_token
from tutorcenter.core.enums import Role
from tutorcenter.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_request_context(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Resolve tenant, caller and role from the access token.
    The caller row must exist and be ACTIVE in the token's tenant.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    caller_id_str = payload.get("sub")
    tenant_id_str = payload.get("tenant_id")
    role_name = payload.get("role")
    if not caller_id_str or not tenant_id_str or not role_name:
        raise credentials_exception

    try:
        caller_id = UUID(caller_id_str)
        tenant_id = UUID(tenant_id_str)
        role = Role(role_name)
    except ValueError:
        raise credentials_exception

    if role == Role.PARENT:
        stmt = select(Parent.status).where(Parent.id == caller_id, Parent.tenant_id == tenant_id)
    else:
        # Token role must agree with the stored staff role
        stmt = select(User.status).where(
            User.id == caller_id,
            User.tenant_id == tenant_id,
            User.role == role.value,
        )
    caller_status = (await db.execute(stmt)).scalar_one_or_none()
    if caller_status != "ACTIVE":
        raise credentials_exception

    return RequestContext(tenant_id=tenant_id, caller_id=caller_id, role=role)
