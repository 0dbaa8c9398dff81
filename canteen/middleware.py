"""
Session gate for browser navigation.

API routes answer with JSON errors from their own dependencies; page routes
are filtered here: no session redirects to the login page, a bad session
also drops the cookie, and non-admins are sent away from /admin.
"""
import logging
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from canteen.config import get_settings
from canteen.api.auth import verify_session_token, clear_session_cookie

settings = get_settings()
logger = logging.getLogger(__name__)

PUBLIC_PATHS = ["/login", "/health", "/docs", "/redoc", "/openapi.json"]
UNGATED_PREFIXES = ("/api/", "/static/", "/favicon.ico")


def is_public_path(path: str) -> bool:
    if path.startswith(UNGATED_PREFIXES):
        return True
    return any(path == p or path.startswith(f"{p}/") for p in PUBLIC_PATHS)


class SessionGateMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if is_public_path(path):
            return await call_next(request)

        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            query = urlencode({"redirect": path})
            return RedirectResponse(f"/login?{query}", status_code=307)

        payload = verify_session_token(token)
        if payload is None:
            logger.info(f"Dropping invalid session cookie on {path}")
            response = RedirectResponse("/login", status_code=307)
            clear_session_cookie(response)
            return response

        if (path == "/admin" or path.startswith("/admin/")) and payload["role"] != "admin":
            return RedirectResponse("/", status_code=307)

        return await call_next(request)
