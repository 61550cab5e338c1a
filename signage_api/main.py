import base64
import binascii
import hmac
import logging
import os
from datetime import datetime, timezone
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from signage_api.db import Base, engine, ensure_sqlite_schema
from signage_api.api import signage
from signage_api.models import device_config  # noqa: F401  registers the table
from signage_api.services.config_store import ConfigStore, get_store
from signage_api.services.errors import StorageUnavailable

Base.metadata.create_all(bind=engine)
ensure_sqlite_schema()

ADMIN_TOKEN = os.getenv("SIGNAGE_ADMIN_TOKEN", "").strip()
ADMIN_USER = os.getenv("SIGNAGE_ADMIN_USER", "admin").strip()
LOG_LEVEL = os.getenv("SIGNAGE_LOG_LEVEL", "INFO").strip().upper()
QUIET_ACCESS_LOG = os.getenv("SIGNAGE_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}
GATED_PREFIXES = ("/signage",)

logging.getLogger("signage_api").setLevel(LOG_LEVEL)

if QUIET_ACCESS_LOG:
    # Keep warning/error lines, suppress normal access noise (devices poll constantly).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _basic_credentials(header: str) -> tuple[str, str] | None:
    if not header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(header[len("Basic "):].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def _credential_matches(request: Request) -> bool | None:
    """None when the caller sent no credential, else whether it matched."""
    token = request.headers.get("X-Admin-Token")
    if token is not None:
        return hmac.compare_digest(token.encode(), ADMIN_TOKEN.encode())
    basic = _basic_credentials(request.headers.get("Authorization") or "")
    if basic is None:
        return None
    user, password = basic
    user_ok = hmac.compare_digest(user.encode(), ADMIN_USER.encode())
    password_ok = hmac.compare_digest(password.encode(), ADMIN_TOKEN.encode())
    return user_ok and password_ok


app = FastAPI(title="signage-config-api")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "signage-config-api",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/healthz")
def healthz(store: ConfigStore = Depends(get_store)):
    try:
        devices = store.count()
    except StorageUnavailable as exc:
        raise HTTPException(status_code=503, detail=exc.as_detail()) from exc
    return {"ok": True, "devices": devices}


@app.middleware("http")
async def admin_gate_middleware(request: Request, call_next):
    if not ADMIN_TOKEN:
        return await call_next(request)
    if not request.url.path.startswith(GATED_PREFIXES):
        return await call_next(request)
    # CORS preflights carry no credentials; CORSMiddleware answers them.
    if request.method == "OPTIONS":
        return await call_next(request)
    matched = _credential_matches(request)
    if matched is None:
        return JSONResponse(
            {"detail": "Unauthorized"},
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="Signage Admin"'},
        )
    if not matched:
        return JSONResponse({"detail": "Forbidden"}, status_code=403)
    return await call_next(request)


app.include_router(signage.router)
