"""FastAPI middleware for authentication and request logging."""

import logging
from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from chatvault.core.auth import get_bearer_token, get_user_from_header, get_user_from_session_token
from chatvault.core.log_sanitizer import sanitize_for_logging

logger = logging.getLogger(__name__)

PUBLIC_PATHS = ("/api/health", "/api/heartbeat")
UPLOAD_PATH = "/api/upload"
SESSION_COOKIE = "__session"


class AuthMiddleware(BaseHTTPMiddleware):
    """Auth gate: resolves the caller's user id or rejects the request with 401.

    The resolved id is stored on ``request.state.user_id`` for the handlers.
    """

    def __init__(
        self,
        app,
        debug_mode: bool = False,
        auth_provider: str = "header",
        auth_header_name: str = "X-User-Id",
        jwks_url: Optional[str] = None,
        issuer: Optional[str] = None,
        authorized_parties: Optional[List[str]] = None,
        jwks_cache_ttl: int = 3600,
        test_user: str = "user_test",
        upload_auth_required: bool = True,
    ):
        super().__init__(app)
        self.debug_mode = debug_mode
        self.auth_provider = auth_provider
        self.auth_header_name = auth_header_name
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.authorized_parties = authorized_parties or []
        self.jwks_cache_ttl = jwks_cache_ttl
        self.test_user = test_user
        self.upload_auth_required = upload_auth_required

    def _resolve_user(self, request: Request) -> Optional[str]:
        if self.auth_provider == "clerk":
            token = get_bearer_token(request.headers.get("Authorization"))
            if not token:
                token = request.cookies.get(SESSION_COOKIE)
            return get_user_from_session_token(
                token,
                self.jwks_url,
                issuer=self.issuer,
                authorized_parties=self.authorized_parties,
                ttl_seconds=self.jwks_cache_ttl,
            )
        return get_user_from_header(request.headers.get(self.auth_header_name))

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        logger.debug("Request: %s %s", request.method, sanitize_for_logging(path))

        # CORS preflight carries no credentials; CORSMiddleware answers it
        if request.method == "OPTIONS":
            return await call_next(request)

        if path in PUBLIC_PATHS or not path.startswith("/api/"):
            return await call_next(request)

        if path == UPLOAD_PATH and not self.upload_auth_required:
            return await call_next(request)

        user_id = self._resolve_user(request)

        if not user_id and self.debug_mode:
            user_id = self.test_user
            logger.debug("Debug mode: using test user %s", sanitize_for_logging(user_id))

        if not user_id:
            logger.warning(f"Missing authentication for API endpoint: {sanitize_for_logging(path)}")
            return JSONResponse(
                status_code=401,
                content={"message": "Unauthorized", "error": "UNAUTHORIZED"},
            )

        request.state.user_id = user_id
        return await call_next(request)
