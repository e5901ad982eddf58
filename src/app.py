"""Merchant notifications FastAPI application.

Serves notification dispatch, merchant preferences and one-time password
endpoints. Every request under a domain prefix runs inside the
notifications domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from pyproject.toml [tool.protean].
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from notifications.domain import notifications
from notifications.utils.logging import add_context, clear_context

notifications.init()

_DOMAIN_PREFIXES = ("/notifications", "/otp")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Merchant Notifications API",
    description="One-time passwords and preference-gated merchant notifications",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the notifications domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        add_context(path=request.url.path, method=request.method)
        try:
            with notifications.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check and docs run outside the domain context
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from notifications.api.errors import register_error_handlers  # noqa: E402
from notifications.api.routes import otp_router, router  # noqa: E402

app.include_router(router)
app.include_router(otp_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "notifications": {"name": notifications.name},
            },
        }
    )
