import logging
import sys
import uuid
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from sealed_session.api import session as session_api
from sealed_session.core.config import settings
from sealed_session.core.exceptions import ConfigError, CookieTooLargeError
from sealed_session.core.limiter import limiter
from sealed_session.core.utils.logging_config import (
    get_correlation_id,
    init_application_logging,
    set_correlation_id,
)

# Initialize structured logging
init_application_logging()

logger = logging.getLogger("sealed_session.main")

app = FastAPI(
    title=settings.app_name,
    description="Stateless sessions stored in sealed cookies",
    version=settings.version,
)

# Attach limiter to app.state for access in route decorators
app.state.limiter = limiter

# Consistent HTTP 429 responses with Retry-After headers
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Tag every log line of a request with X-Request-ID (or a fresh id)."""
    set_correlation_id(request.headers.get("x-request-id") or str(uuid.uuid4()))
    response = await call_next(request)
    response.headers["X-Request-ID"] = get_correlation_id()
    return response


@app.exception_handler(CookieTooLargeError)
async def cookie_too_large_handler(request: Request, exc: CookieTooLargeError):
    logger.warning("Session cookie too large on %s", request.url.path)
    return JSONResponse(status_code=413, content={"detail": str(exc)})


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    logger.error("Session configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Session configuration error"})


app.include_router(session_api.router)

logger.info(
    "Session service initialized: cookie=%s, ttl=%s, login rate limit=%s",
    settings.session_cookie_name,
    settings.session_ttl,
    settings.rate_limit_auth_endpoints,
)


@app.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/health")
def api_health_check():
    """Health check with version and session configuration status."""
    try:
        settings.session_options()
        session_status = {"status": "healthy", "cookie_name": settings.session_cookie_name}
    except ConfigError as e:
        session_status = {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy" if session_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "version": settings.version,
        "environment": {
            "dev_mode": settings.dev_mode,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        },
        "services": {"sessions": session_status},
    }
