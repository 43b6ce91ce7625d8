import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.identity import Identity
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import get_current_user
from app.schemas.auth import LoginRequest, PasswordChange, Token, UserResponse
from app.services import auth as auth_service
from app.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _summary(user: User) -> UserResponse:
    summary = UserResponse.model_validate(user)
    summary.employee_id = Identity.from_user(user).employee_id
    return summary


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    email = credentials.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if user is None or not auth_service.verify_password(credentials.password, user.hashed_password):
        AuditService.log(db, "failed_login", "user", None, email, None, {"reason": "invalid_credentials"})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    identity = Identity.from_user(user)
    access_token = auth_service.create_access_token({
        "sub": identity.email,
        "role": identity.role.value,
        "user_id": identity.user_id,
        "employee_id": identity.employee_id,
    })
    logger.info(f"{identity.email} logged in")
    return Token(access_token=access_token, token_type="bearer", user=_summary(user).model_dump(mode="json"))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return _summary(current_user)


@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not auth_service.verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    current_user.hashed_password = auth_service.get_password_hash(data.new_password)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    AuditService.log_for(db, Identity.from_user(current_user), "password_changed", "user", current_user.id)
    return {"message": "Password updated successfully"}
