"""Access guard.

Sign-in lives with the external identity provider; this module only
verifies the bearer token it issues, resolves the principal's role from
``profiles`` and decides whether the principal may act as a given agent.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from agent_portal.core.config import settings
from agent_portal.core.errors import AccessDenied
from agent_portal.models.profile import Profile, ProfileRole
from agent_portal.services.gateway import DataStoreGateway, get_gateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    id: str
    role: str


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode({"sub": str(subject), "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Subject of a valid token, None for anything else."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub") or None


def _profile_role(session: Session, profile_id: str) -> Optional[str]:
    profile = session.query(Profile.role).filter(Profile.id == profile_id).first()
    return profile.role if profile else None


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    gateway: DataStoreGateway = Depends(get_gateway),
) -> Principal:
    unauthenticated = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthenticated

    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise unauthenticated

    role = gateway.call(_profile_role, subject, entity=f"profile {subject}")
    if role is None:
        raise unauthenticated
    return Principal(id=subject, role=role)


def require_agent(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role.lower() != ProfileRole.AGENT.value:
        raise AccessDenied("Agent access required")
    return principal


def ensure_acting_as(principal: Principal, agent_id: str) -> str:
    """A caller-supplied agent id is trusted only if it is the principal's own."""
    if principal.id != agent_id:
        logger.warning(f"Principal {principal.id} attempted to act as agent {agent_id}")
        raise AccessDenied()
    return agent_id
