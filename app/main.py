from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import admin, events, health
from app.core.config import Settings
from app.core.logger import configure_logging, get_logger
from app.domain.errors import (
    ActionInProgress,
    ControlPlaneError,
    InvalidAction,
    RuntimeActionError,
    RuntimeUnavailable,
)
from app.domain.ports import ActivityRepository, ClientProfileRepository, ContainerRuntime
from app.services.context import build_control_plane

logger = get_logger(__name__)

ERROR_STATUS = {
    InvalidAction: 400,
    ActionInProgress: 409,
    RuntimeActionError: 500,
    RuntimeUnavailable: 500,
}


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


def create_app(
    settings: Settings | None = None,
    runtime: ContainerRuntime | None = None,
    activity_repo: ActivityRepository | None = None,
    profile_repo: ClientProfileRepository | None = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    manage_database = activity_repo is None or profile_repo is None

    if runtime is None:
        from app.services.docker_runtime import DockerSDKRuntime
        runtime = DockerSDKRuntime(settings)
    if activity_repo is None:
        from app.repositories.activity_repository import SQLActivityRepository
        activity_repo = SQLActivityRepository()
    if profile_repo is None:
        from app.repositories.client_repository import SQLClientProfileRepository
        profile_repo = SQLClientProfileRepository()

    plane = build_control_plane(settings, runtime, activity_repo, profile_repo)

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION)
    app.state.control_plane = plane

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(admin.router, prefix="/api")
    app.include_router(health.router, prefix="/api")
    app.include_router(events.router, prefix="/api")

    # ---------- Error mapping ----------

    @app.exception_handler(ControlPlaneError)
    async def control_plane_error_handler(request: Request, exc: ControlPlaneError):
        status_code = ERROR_STATUS.get(type(exc), 500)
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(status_code=status_code, content=_error_body(str(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))

    # ---------- Startup / Shutdown ----------

    @app.on_event("startup")
    async def startup_event():
        if manage_database:
            from app.core.database import database, init_db
            init_db()
            await database.connect()
        if settings.REFRESH_INTERVAL_SECONDS > 0:
            plane.registry.start_refresh_loop(interval=settings.REFRESH_INTERVAL_SECONDS)
        logger.info(f"[STARTUP] {settings.APP_NAME} ready")

    @app.on_event("shutdown")
    async def shutdown_event():
        await plane.registry.stop_refresh_loop()
        await plane.activity.drain()
        if manage_database:
            from app.core.database import database
            await database.disconnect()
        logger.info("[SHUTDOWN] Database disconnected")

    return app


app = create_app()


def run() -> None:
    """Entry point for the admin-plane console script."""
    import uvicorn

    settings = Settings()
    logger.info(f"Starting API server on {settings.HOST}:{settings.PORT}...")
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
