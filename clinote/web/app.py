"""FastAPI application factory."""

import base64
import binascii
import secrets

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from clinote.config import settings
from clinote.dictation.store import SessionRegistry

app = FastAPI(title="ClinNote", docs_url=None, redoc_url=None)

# Stateless endpoints reachable without credentials (health check, analyzer called by sessions)
_PUBLIC_PATHS = ("/api/health", "/api/clinote/analyze")


def _credentials_ok(header: str | None) -> bool:
    if not header:
        return False
    try:
        scheme, credentials = header.split(" ", 1)
        if scheme.lower() != "basic":
            return False
        decoded = base64.b64decode(credentials).decode("utf-8")
        username, password = decoded.split(":", 1)
    except (ValueError, binascii.Error, UnicodeDecodeError):
        return False
    return (
        secrets.compare_digest(username, settings.auth_username)
        and secrets.compare_digest(password, settings.auth_password)
    )


class BasicAuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        if not settings.auth_enabled or request.url.path in _PUBLIC_PATHS:
            return await call_next(request)

        if _credentials_ok(request.headers.get("authorization")):
            return await call_next(request)

        return Response(
            content="Unauthorized",
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="ClinNote"'},
        )


app.add_middleware(BasicAuthMiddleware)

app.state.sessions = SessionRegistry()

from clinote.web.routes import api, sessions, settings as settings_routes  # noqa: E402

app.include_router(api.router)
app.include_router(sessions.router)
app.include_router(settings_routes.router)
