"""
API dependencies for authentication and shared services.
"""
from functools import lru_cache
from typing import Optional, Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.core.database import get_db, async_session_maker
from coffee_pairing.core.security import CallerIdentity, decode_token, identity_from_payload
from coffee_pairing.services.pairing_service import PairingService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CallerIdentity:
    """
    Resolve the caller from a bearer token issued by the identity provider.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    identity = identity_from_payload(payload)
    if identity is None:
        raise credentials_exception

    return identity


@lru_cache()
def get_pairing_service() -> PairingService:
    """Process-wide pairing service sharing the per-organization locks with the scheduler."""
    return PairingService(async_session_maker)


# Type aliases for cleaner signatures
CurrentIdentity = Annotated[CallerIdentity, Depends(get_current_identity)]
DBSession = Annotated[AsyncSession, Depends(get_db)]
PairingServiceDep = Annotated[PairingService, Depends(get_pairing_service)]
