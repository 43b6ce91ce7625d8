"""
HRMS Back Office API.

Payroll and salary slips, reimbursements, comp-off, document uploads and
password resets. Business routes live under settings.api_prefix; docs and
health checks stay at the root.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

import app.models  # registers every table on Base.metadata
from app.core.config import settings
from app.core.error_handlers import register_exception_handlers
from app.core.init_system import init_system_data
from app.core.limiter import limiter
from app.core.logging import setup_logging
from app.core.middleware import CorrelationIdMiddleware, LoggingMiddleware, SecureHeadersMiddleware
from app.database import init_db
from app.routers import health
from app.routers.api_router import api_router
from app.services.storage import LOCAL_URL_PREFIX

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
        init_system_data()
    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        raise
    logger.info("Database ready")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="HR back office: payroll, salary slips, reimbursements, comp-off and document uploads",
    lifespan=lifespan,
)

if settings.storage.provider.lower() == "local":
    files_dir = Path(settings.storage.local_dir)
    files_dir.mkdir(parents=True, exist_ok=True)
    app.mount(LOCAL_URL_PREFIX, StaticFiles(directory=str(files_dir)), name="files")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# Last added runs first: CORS wraps everything, the default rate limit sits closest to the routes.
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecureHeadersMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)

app.include_router(health.router)
app.include_router(api_router, prefix=settings.api_prefix)
