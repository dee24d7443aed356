# foodlink/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pymongo.errors import PyMongoError

from foodlink.api import auth, donations, photos, profiles
from foodlink.core.config import settings
from foodlink.core.errors import AuthenticationRequired, FoodLinkError, FormValidationError
from foodlink.core.logging import log_backend_error
from foodlink.deps import get_repo

@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_repo().ensure_indexes()
    logger.info("FoodLink API up (store={})", "mongo" if settings.use_mongo else "memory")
    yield
    if settings.use_mongo:
        from foodlink.core.db import get_client
        get_client().close()


app = FastAPI(lifespan=lifespan, title="FoodLink API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Error mapping ----------------
@app.exception_handler(FoodLinkError)
async def _domain_error(request: Request, exc: FoodLinkError):
    body = {"detail": exc.detail, "code": type(exc).__name__}
    if isinstance(exc, FormValidationError):
        body["errors"] = exc.errors
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
    return JSONResponse(body, status_code=exc.status_code, headers=headers)

@app.exception_handler(PyMongoError)
async def _backend_error(request: Request, exc: PyMongoError):
    log_backend_error(f"{request.method} {request.url.path}", exc)
    return JSONResponse(
        {"detail": "Service temporarily unavailable", "code": "BackendUnavailable"},
        status_code=503,
    )

# ---------------- Routers ----------------
app.include_router(auth.router)        # /api/auth
app.include_router(profiles.router)    # /api/profiles
app.include_router(donations.router)   # /api/donations
app.include_router(photos.router)      # /photos

# Health
@app.get("/health")
def health():
    return {"ok": True}
