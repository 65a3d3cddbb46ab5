# videotube/main.py
import logging
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from videotube.config import settings
from videotube.core.db import init_db, close_db
from videotube.core.errors import ApiError, Internal, InvalidInput
from videotube.services import RelationshipAggregator, TokenService, UserStore

from videotube.api.v1.routers import users, videos, playlists, subscriptions

logger = logging.getLogger("uvicorn.error")


def build_services(app: FastAPI) -> None:
    """Construct the request-independent collaborators once and hang them on app.state."""
    store = UserStore(timeout=settings.store_timeout_seconds)
    app.state.user_store = store
    app.state.token_service = TokenService(
        store,
        access_secret=settings.access_token_secret,
        access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        refresh_secret=settings.refresh_token_secret,
        refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
    )
    app.state.relationships = RelationshipAggregator(timeout=settings.store_timeout_seconds)
    # Resolved lazily by deps.get_storage so the API boots without Cloudinary credentials
    app.state.storage = None


app = FastAPI(title=settings.APP_NAME)
build_services(app)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.warning("[api] %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    err = InvalidInput("Invalid request", errors=[
        {"loc": list(e.get("loc", [])), "msg": e.get("msg", "")} for e in exc.errors()
    ])
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[api] unhandled error on %s %s", request.method, request.url.path)
    err = Internal()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.on_event("startup")
async def on_startup():
    await init_db()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(users.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")
app.include_router(playlists.router, prefix="/api/v1")
app.include_router(subscriptions.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
