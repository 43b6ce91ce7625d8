import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class EmailSettings(BaseModel):
    provider: str = Field(default=os.getenv("EMAIL_PROVIDER", "mock"))  # mock | smtp | mailjet
    from_email: str = Field(default=os.getenv("EMAIL_FROM", "noreply@hrms.example.com"))
    from_name: str = Field(default=os.getenv("EMAIL_FROM_NAME", "HRMS System"))
    cc: Optional[str] = Field(default=os.getenv("EMAIL_CC") or None)

    smtp_host: Optional[str] = Field(default=os.getenv("SMTP_HOST"))
    smtp_port: int = Field(default=int(os.getenv("SMTP_PORT", "587")))
    smtp_username: Optional[str] = Field(default=os.getenv("SMTP_USERNAME"))
    smtp_password: Optional[str] = Field(default=os.getenv("SMTP_PASSWORD"))
    smtp_use_tls: bool = Field(default=os.getenv("SMTP_USE_TLS", "true").lower() == "true")

    mailjet_api_key: Optional[str] = Field(default=os.getenv("MAILJET_API_KEY"))
    mailjet_api_secret: Optional[str] = Field(default=os.getenv("MAILJET_API_SECRET"))

class StorageSettings(BaseModel):
    provider: str = Field(default=os.getenv("STORAGE_PROVIDER", "local"))  # local | s3
    base_folder: str = Field(default=os.getenv("STORAGE_BASE_FOLDER", "hrms_documents"))
    local_dir: str = Field(default=os.getenv("LOCAL_STORAGE_DIR", "uploads"))
    public_base_url: str = Field(default=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"))

    s3_endpoint_url: Optional[str] = Field(default=os.getenv("S3_ENDPOINT_URL"))
    s3_region: str = Field(default=os.getenv("S3_REGION", "us-east-1"))
    s3_access_key: Optional[str] = Field(default=os.getenv("S3_ACCESS_KEY"))
    s3_secret_key: Optional[str] = Field(default=os.getenv("S3_SECRET_KEY"))
    s3_bucket_name: Optional[str] = Field(default=os.getenv("S3_BUCKET_NAME"))

    # Size limits in bytes
    max_bill_size: int = 5 * 1024 * 1024
    max_profile_picture_size: int = 5 * 1024 * 1024
    max_government_id_size: int = 10 * 1024 * 1024

class Config(BaseModel):
    app_name: str = "HRMS Back Office"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # Bootstrap admin, created on first start when no users exist
    bootstrap_admin_email: str = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "admin@hrms.example.com")
    bootstrap_admin_password: str = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "dev-only-admin-password")
    bootstrap_enabled: bool = os.getenv("BOOTSTRAP_ADMIN", "true").lower() == "true"

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))
    password_reset_rate_limit: str = os.getenv("PASSWORD_RESET_RATE_LIMIT", "5/minute")

    # Password reset
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    password_reset_token_hours: int = int(os.getenv("PASSWORD_RESET_TOKEN_HOURS", "24"))
    min_password_length: int = 6

    # Payroll
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "₹")
    unpaid_leave_type: str = "Unpaid Leave"
    comp_off_validity_days: int = int(os.getenv("COMP_OFF_VALIDITY_DAYS", "90"))
    employee_id_prefix: str = os.getenv("EMPLOYEE_ID_PREFIX", "EMP")
    employee_id_start: int = int(os.getenv("EMPLOYEE_ID_START", "1000"))

    email: EmailSettings = EmailSettings()
    storage: StorageSettings = StorageSettings()

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if settings.bootstrap_enabled and "dev-only" in settings.bootstrap_admin_password:
        _critical_missing.append("BOOTSTRAP_ADMIN_PASSWORD")
    if settings.storage.provider == "s3" and not settings.storage.s3_bucket_name:
        _critical_missing.append("S3_BUCKET_NAME")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following settings must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY, only acceptable in development.")
