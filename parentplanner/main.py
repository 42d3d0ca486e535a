import logging
import traceback
from contextlib import asynccontextmanager

import firebase_admin
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi_mcp import FastApiMCP

from parentplanner.core.config import settings
from parentplanner.api.routes.health import router as health_router
from parentplanner.api.routes.auth import router as auth_router
from parentplanner.api.routes.me import router as me_router
from parentplanner.api.routes.friends import router as friends_router
from parentplanner.api.routes.activities import router as activities_router
from parentplanner.services.firebase import initialize_firebase_app
from parentplanner.stores import build_store


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    firebase_app = None
    if settings.firebase_configured():
        firebase_app = initialize_firebase_app(
            settings.firebase_credentials_file,
            settings.firebase_project_id,
        )

    store = build_store(settings, firebase_app=firebase_app)
    await store.init()
    app.state.store = store
    app.state.firebase_app = firebase_app
    logger.info("ParentPlanner started with %s store", settings.store_backend)
    try:
        yield
    finally:
        await store.close()
        app.state.store = None
        if firebase_app is not None:
            firebase_admin.delete_app(firebase_app)
            app.state.firebase_app = None


app = FastAPI(title="ParentPlanner API", version="0.1.0", lifespan=lifespan)

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)

@app.exception_handler(Exception)
async def debug_exception_handler(request: Request, exc: Exception):
    if settings.env in {"local", "test"}:
        return PlainTextResponse(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            status_code=500,
        )
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    return PlainTextResponse("Internal Server Error", status_code=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(friends_router)
app.include_router(activities_router)

mcp = FastApiMCP(app)
mcp.mount_http()
