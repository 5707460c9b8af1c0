# Application entrypoint: configures logging, middleware, error mapping, startup routines, and API routers.
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import Base, engine
from .errors import DomainError, InternalError
from .logging_config import configure_logging
from .routes.auth import router as auth_router
from .routes.leases import router as leases_router
from .routes.maintenance import router as maintenance_router
from .routes.properties import router as properties_router
from .routes.tenants import router as tenants_router

logger = logging.getLogger("rentalhub.errors")


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


app = FastAPI(title="RentalHub API", version="0.1.0")
allow_list = _parse_cors_origins(os.getenv("CORS_ORIGINS"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map core outcomes (not found, forbidden, conflict, validation, internal) to HTTP responses."""
    if isinstance(exc, InternalError):
        logger.error("request.failed", extra={"path": request.url.path, "status": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if os.getenv("DATABASE_URL", "sqlite:///./data.db").startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


# Authentication at the root; domain APIs under /api/v1
app.include_router(auth_router, prefix="", tags=["auth"])
app.include_router(properties_router, prefix="/api/v1", tags=["properties"])
app.include_router(tenants_router, prefix="/api/v1", tags=["tenants"])
app.include_router(leases_router, prefix="/api/v1", tags=["leases"])
app.include_router(maintenance_router, prefix="/api/v1", tags=["maintenance"])
