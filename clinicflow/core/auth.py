from __future__ import annotations

import time
from dataclasses import dataclass, field
from uuid import NAMESPACE_URL, UUID, uuid5

import requests
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.config import settings
from clinicflow.core.db import get_db_session
from clinicflow.models.organization import Organization
from clinicflow.models.staff_user import StaffUser

bearer_scheme = HTTPBearer(auto_error=True)


@dataclass(slots=True)
class AuthContext:
    user_id: UUID
    subject: str
    organization_id: UUID | None
    is_super_admin: bool = False
    claims: dict = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TenantRef:
    id: UUID
    subscription_plan_id: str | None
    name: str = ""


class JwksCache:
    def __init__(self, ttl_seconds: int = 300) -> None:
        self.ttl_seconds = ttl_seconds
        self._jwks: dict | None = None
        self._fetched_at = 0.0

    def get(self, url: str) -> dict:
        now = time.time()
        if self._jwks is None or (now - self._fetched_at) > self.ttl_seconds:
            response = requests.get(url, timeout=5)
            response.raise_for_status()
            self._jwks = response.json()
            self._fetched_at = now
        return self._jwks


jwks_cache = JwksCache()


def subject_to_user_id(subject: str) -> UUID:
    try:
        return UUID(subject)
    except ValueError:
        return uuid5(NAMESPACE_URL, f"clinicflow:{subject}")


def _get_signing_key(token: str) -> dict:
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication header",
        ) from exc

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT is missing key id",
        )

    jwks = jwks_cache.get(settings.auth_jwks_url)
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No matching signing key found",
    )


def _decode_jwt(token: str) -> dict:
    key = _get_signing_key(token)

    options = {"verify_aud": bool(settings.auth_audience)}
    try:
        return jwt.decode(
            token,
            key,
            algorithms=["RS256", "ES256"],
            issuer=settings.auth_issuer,
            audience=settings.auth_audience or None,
            options=options,
        )
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc


def _is_super_admin(context: AuthContext) -> bool:
    if context.is_super_admin:
        return True
    if context.subject in settings.super_admin_subjects():
        return True

    app_metadata = context.claims.get("app_metadata") or {}
    roles = app_metadata.get("roles") or context.claims.get("roles") or []
    role = app_metadata.get("role") or context.claims.get("role")
    return role == "super_admin" or "super_admin" in roles


async def require_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    claims = _decode_jwt(credentials.credentials)

    subject = claims.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is missing required claims",
        )

    user_id = subject_to_user_id(subject)
    staff = await session.scalar(select(StaffUser).where(StaffUser.id == user_id))
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not provisioned",
        )
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive",
        )

    request.state.organization_id = staff.organization_id
    request.state.auth_claims = claims
    request.state.user_subject = subject

    return AuthContext(
        user_id=user_id,
        subject=subject,
        organization_id=staff.organization_id,
        is_super_admin=bool(staff.is_super_admin),
        claims=claims,
    )


async def require_super_admin(
    context: AuthContext = Depends(require_auth_context),
) -> AuthContext:
    if not _is_super_admin(context):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin privileges required",
        )
    return context


async def load_tenant(session: AsyncSession, organization_id: UUID | None) -> TenantRef | None:
    if organization_id is None:
        return None

    organization = await session.scalar(
        select(Organization).where(Organization.id == organization_id)
    )
    if organization is None:
        return None
    if not organization.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization is inactive",
        )

    return TenantRef(
        id=organization.id,
        subscription_plan_id=organization.subscription_plan or None,
        name=organization.name,
    )


async def get_current_organization(
    context: AuthContext = Depends(require_auth_context),
    session: AsyncSession = Depends(get_db_session),
) -> TenantRef | None:
    return await load_tenant(session, context.organization_id)


async def require_organization(
    tenant: TenantRef | None = Depends(get_current_organization),
) -> TenantRef:
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No organization is linked to this user",
        )
    return tenant
