"""
Bearer token handling and organization-scoped authorization.

Identity itself is issued by an external provider; this module only verifies
the signed token and answers "may this caller manage that organization".
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from coffee_pairing.core.config import get_settings
from coffee_pairing.core.exceptions import Forbidden
from coffee_pairing.models.user import UserRole

settings = get_settings()

ADMIN_ROLES = (UserRole.ORG_ADMIN, UserRole.SUPER_ADMIN)


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as carried by the access token."""
    id: int
    role: UserRole
    organization_id: int

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


def create_access_token(
    user_id: int,
    role: UserRole,
    organization_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed access token for the given identity."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role.value,
        "org_id": organization_id,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def identity_from_payload(payload: dict[str, Any]) -> Optional[CallerIdentity]:
    """Build a CallerIdentity from decoded claims, or None if claims are malformed."""
    try:
        return CallerIdentity(
            id=int(payload["sub"]),
            role=UserRole(payload["role"]),
            organization_id=int(payload["org_id"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def can_administer(identity: CallerIdentity, organization_id: int) -> bool:
    """Super admins manage every organization, org admins only their own."""
    if identity.role == UserRole.SUPER_ADMIN:
        return True
    return identity.role == UserRole.ORG_ADMIN and identity.organization_id == organization_id


def ensure_can_administer(identity: CallerIdentity, organization_id: int) -> None:
    if not can_administer(identity, organization_id):
        raise Forbidden(
            f"User {identity.id} is not an administrator of organization {organization_id}"
        )


def ensure_member(identity: CallerIdentity, organization_id: int) -> None:
    if identity.is_super_admin or identity.organization_id == organization_id:
        return
    raise Forbidden(f"User {identity.id} does not belong to organization {organization_id}")
