"""
Chat history backend: chats, per-user chat lists and image upload credentials.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from chatvault.core.log_sanitizer import sanitize_for_logging
from chatvault.core.logging_config import instrument_app, setup_logging
from chatvault.core.metrics_logger import ERROR, log_metric
from chatvault.core.middleware import AuthMiddleware
from chatvault.domain.errors import AuthenticationError, DomainError, NotFoundError, ValidationError
from chatvault.infrastructure.app_factory import app_factory
from chatvault.routes.chat_routes import router as chat_router
from chatvault.routes.health_routes import SERVICE_NAME
from chatvault.routes.health_routes import root_router as health_root_router
from chatvault.routes.health_routes import router as health_router
from chatvault.routes.upload_routes import router as upload_router
from chatvault.version import VERSION

load_dotenv()

config = app_factory.get_config_manager()

setup_logging(
    SERVICE_NAME,
    VERSION,
    log_level=config.app_settings.log_level,
    log_dir=config.app_settings.app_log_dir,
    environment=config.app_settings.environment,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    A DatabaseConnectionError from storage initialization is not caught:
    startup fails and the process exits so the supervisor can restart it.
    """
    logger.info("Starting %s %s", SERVICE_NAME, VERSION)

    settings = config.app_settings
    if settings.debug_mode:
        logger.warning(
            "DEBUG_MODE is on: unauthenticated requests run as test user %s",
            sanitize_for_logging(settings.test_user),
        )
    config.validate_config()

    app_factory.initialize_storage()
    logger.info("Chat storage ready")

    yield

    logger.info("Shutting down %s", SERVICE_NAME)


app = FastAPI(
    title="Chatvault Backend",
    description="Chat history storage and image upload credentials",
    version=VERSION,
    lifespan=lifespan,
)


def _error_response(status_code: int, message: str, code=None) -> JSONResponse:
    content = {"message": message}
    if code:
        content["error"] = code
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(400, exc.message, exc.code or "VALIDATION_ERROR")


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = ".".join(str(p) for p in loc if p != "body")
    message = f"Invalid request field '{field}'" if field else "Invalid request body"
    return _error_response(400, message, "VALIDATION_ERROR")


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return _error_response(401, exc.message, exc.code or "UNAUTHORIZED")


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return _error_response(404, exc.message, exc.code or "NOT_FOUND")


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.error(f"Domain error on {sanitize_for_logging(request.url.path)}: {exc.message}")
    log_metric(ERROR, getattr(request.state, "user_id", None), error_type="domain")
    return _error_response(500, exc.message, exc.code or "INTERNAL_ERROR")


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {sanitize_for_logging(request.url.path)}: {exc}", exc_info=exc)
    log_metric(ERROR, getattr(request.state, "user_id", None), error_type="storage")
    return _error_response(500, "Internal Server Error")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {sanitize_for_logging(request.url.path)}: {exc}", exc_info=exc)
    log_metric(ERROR, getattr(request.state, "user_id", None), error_type="unexpected")
    return _error_response(500, "Internal Server Error")


# Auth is added first so CORS wraps it and answers preflights itself
app.add_middleware(
    AuthMiddleware,
    debug_mode=config.app_settings.debug_mode,
    auth_provider=config.app_settings.auth_provider,
    auth_header_name=config.app_settings.auth_user_header,
    jwks_url=config.app_settings.clerk_jwks_url,
    issuer=config.app_settings.clerk_issuer,
    authorized_parties=config.app_settings.clerk_authorized_parties,
    jwks_cache_ttl=config.app_settings.clerk_jwks_cache_ttl,
    test_user=config.app_settings.test_user,
    upload_auth_required=config.app_settings.feature_upload_auth_required,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.app_settings.client_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_root_router)
app.include_router(health_router)
app.include_router(upload_router)
app.include_router(chat_router)

instrument_app(app)


if __name__ == "__main__":
    import uvicorn

    # Set CHATVAULT_HOST=0.0.0.0 where the server must be reachable externally
    uvicorn.run(app, host=config.app_settings.host, port=config.app_settings.port)
