import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request, Response

# Import settings first for logging configuration
from spoolshelf.app.core.config import settings as app_settings, APP_VERSION

# Configure logging based on settings
# DEBUG=true -> DEBUG level, else use LOG_LEVEL setting
log_level_str = "DEBUG" if app_settings.debug else app_settings.log_level.upper()
log_level = getattr(logging, log_level_str, logging.INFO)
log_format = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

# Create root logger
root_logger = logging.getLogger()
root_logger.setLevel(log_level)

# Console handler - always enabled
console_handler = logging.StreamHandler()
console_handler.setLevel(log_level)
console_handler.setFormatter(logging.Formatter(log_format))
root_logger.addHandler(console_handler)

# File handler - only in production or if explicitly enabled
if app_settings.log_to_file:
    log_file = app_settings.log_dir / "spoolshelf.log"
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(file_handler)
    logging.info(f"Logging to file: {log_file}")

# Reduce noise from third-party libraries in production
if not app_settings.debug:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

logging.info(f"Spoolshelf starting - debug={app_settings.debug}, log_level={log_level_str}")

from spoolshelf.app.core.database import init_db  # noqa: E402
from spoolshelf.app.core.cors import cors_headers  # noqa: E402
from spoolshelf.app.core.errors import register_exception_handlers  # noqa: E402
from spoolshelf.app.api.routes import auth, filaments  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    if not app_settings.edit_token:
        logging.warning("EDIT_TOKEN is not set - every change to the inventory will be rejected")

    yield


app = FastAPI(
    title=app_settings.app_name,
    description="Track 3D printer filament spools",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflights directly and stamp CORS headers on every other response."""
    headers = cors_headers(request.headers.get("origin"), app_settings.allowed_origin_list)
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response


# API routes
app.include_router(filaments.router, prefix=app_settings.api_prefix)
app.include_router(auth.router, prefix=app_settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
