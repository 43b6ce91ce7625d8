import logging
from app.core.config import settings
from app.database import SessionLocal
from app.models.user import User, UserRole
from app.services import auth as auth_service

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Creates the bootstrap admin account when the user table is empty.
    Disabled with BOOTSTRAP_ADMIN=false.
    """
    if not settings.bootstrap_enabled:
        logger.info("Startup bootstrap disabled")
        return

    db = SessionLocal()
    try:
        user_count = db.query(User).count()
        if user_count == 0:
            logger.info("Running startup initialization...")
            admin_email = settings.bootstrap_admin_email.lower()
            admin_user = User(
                email=admin_email,
                hashed_password=auth_service.get_password_hash(settings.bootstrap_admin_password),
                full_name="System Administrator",
                role=UserRole.ADMIN,
                is_active=True
            )
            db.add(admin_user)
            db.commit()
            logger.info(f"✓ Created bootstrap admin: {admin_email} (change the password after first login)")
        else:
            logger.info(f"System initialization check: {user_count} user(s) found.")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
