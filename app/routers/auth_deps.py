"""
Bearer-token authentication and role gates.

Routes depend on get_identity / require_role and hand the resulting
Identity to the service layer; nothing downstream reads the request.
"""
import logging
from typing import Callable, Sequence

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.auth import TokenData
from app.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_data(token: str) -> TokenData:
    payload = auth_service.decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")
    if payload.get("error") == "TOKEN_EXPIRED":
        raise _unauthorized("TOKEN_EXPIRED")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise _unauthorized("Malformed access token")
    return TokenData(email=payload["sub"], role=payload.get("role"))


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    data = _token_data(token)
    user = db.query(User).filter(User.email == data.email).first()
    if user is None:
        logger.warning(f"Token presented for unknown account {data.email}")
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")
    return user


def get_identity(current_user: User = Depends(get_current_user)) -> Identity:
    return Identity.from_user(current_user)


def require_role(allowed_roles: Sequence[UserRole]) -> Callable:
    """Dependency factory: the caller's Identity, or 403 when their role is not listed."""
    allowed = tuple(allowed_roles)

    def role_checker(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            logger.info(f"{identity.email} ({identity.role.value}) refused, needs one of {[r.value for r in allowed]}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed]}",
            )
        return identity
    return role_checker


def require_admin():
    return require_role([UserRole.ADMIN])


def require_manager():
    """Admins pass every manager gate."""
    return require_role([UserRole.ADMIN, UserRole.MANAGER])
