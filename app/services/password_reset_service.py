"""
Password reset tokens.

A token is issued unused and becomes used either when redeemed or when a
newer request for the same email supersedes it. Expiry is checked when a
token is validated or redeemed; nothing sweeps old rows.
"""
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ExpiredResetTokenError, InvalidResetTokenError
from app.database import utcnow
from app.models.password_reset import PasswordResetToken
from app.models.user import User
from app.services import auth as auth_service
from app.services.audit import AuditService
from app.services.email_templates import password_changed_email, password_reset_email
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)

REQUEST_ACCEPTED_MESSAGE = "If an account exists with this email, a password reset link has been sent."


def _display_name(user: User) -> str:
    if user.employee_profile and user.employee_profile.full_name:
        return user.employee_profile.full_name
    return user.full_name or user.email


def build_reset_url(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/reset-password?token={token}"


def request_reset(db: Session, email: str, background_tasks: Optional[BackgroundTasks] = None) -> Dict[str, Any]:
    """
    Issue a reset token and email the link.

    The response is identical whether or not the account exists.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        logger.info(f"Password reset requested for unknown or inactive account {email}")
        return {"success": True, "message": REQUEST_ACCEPTED_MESSAGE}

    now = utcnow()
    try:
        superseded = (
            db.query(PasswordResetToken)
            .filter(PasswordResetToken.email == email, PasswordResetToken.used.is_(False))
            .update({PasswordResetToken.used: True, PasswordResetToken.used_at: now})
        )
        token = PasswordResetToken(
            token=secrets.token_hex(32),
            email=email,
            created_at=now,
            expires_at=now + timedelta(hours=settings.password_reset_token_hours),
            used=False,
        )
        db.add(token)
        db.commit()
        db.refresh(token)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Password reset token issued for {email} ({superseded} older token(s) invalidated)")
    NotificationService.queue_email(
        db,
        email,
        password_reset_email(_display_name(user), build_reset_url(token.token), settings.password_reset_token_hours),
        "password_reset",
        background_tasks,
    )
    AuditService.log(
        db,
        action="password_reset_requested",
        entity_type="user",
        entity_id=user.id,
        actor_email=email,
        actor_role=user.role,
        details={"expires_at": token.expires_at.isoformat(), "superseded": superseded},
    )
    return {"success": True, "message": REQUEST_ACCEPTED_MESSAGE}


def _usable_token(db: Session, token: str) -> PasswordResetToken:
    record = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
    if not record or record.used:
        raise InvalidResetTokenError()
    if utcnow() >= record.expires_at:
        raise ExpiredResetTokenError()
    return record


def _account_for(db: Session, record: PasswordResetToken) -> User:
    user = db.query(User).filter(User.email == record.email).first()
    if not user or not user.is_active:
        raise InvalidResetTokenError()
    return user


def validate_token(db: Session, token: str) -> Dict[str, Any]:
    record = _usable_token(db, token)
    user = _account_for(db, record)
    return {
        "status": "valid",
        "email": record.email,
        "full_name": _display_name(user),
        "expires_at": record.expires_at,
    }


def reset_password(
    db: Session,
    token: str,
    new_password: str,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Set a new password and consume the token in one commit: if the
    password update fails, the token stays usable.
    """
    record = _usable_token(db, token)
    user = _account_for(db, record)

    now = utcnow()
    try:
        record.used = True
        record.used_at = now
        user.hashed_password = auth_service.get_password_hash(new_password)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Password reset completed for {user.email}")
    NotificationService.queue_email(
        db, user.email, password_changed_email(_display_name(user), now), "password_changed", background_tasks,
    )
    AuditService.log(
        db,
        action="password_reset_completed",
        entity_type="user",
        entity_id=user.id,
        actor_email=user.email,
        actor_role=user.role,
        details={},
    )
    return {"success": True, "message": "Password has been reset successfully. You can now log in."}
