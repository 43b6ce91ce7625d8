from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.limiter import limiter
from app.database import get_db
from app.schemas.password_reset import PasswordResetConfirm, PasswordResetRequest
from app.services import password_reset_service

router = APIRouter(prefix="/password-reset", tags=["password-reset"])


@router.post("/request")
@limiter.limit(settings.password_reset_rate_limit)
def request_password_reset(
    request: Request,
    data: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Always answers with the same message, whether or not the account exists."""
    return password_reset_service.request_reset(db, data.email, background_tasks)


@router.get("/validate/{token}")
def validate_reset_token(token: str, db: Session = Depends(get_db)):
    return password_reset_service.validate_token(db, token)


@router.post("/reset")
def reset_password(
    data: PasswordResetConfirm,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    return password_reset_service.reset_password(db, data.token, data.new_password, background_tasks)
