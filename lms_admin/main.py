import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from lms_admin.api.course.router import router as course_router
from lms_admin.api.dashboard.router import router as dashboard_router
from lms_admin.api.quiz.router import router as quiz_router
from lms_admin.api.responses import redirect
from lms_admin.api.settings.router import router as settings_router
from lms_admin.api.users.router import router as users_router
from lms_admin.auth.dependencies import get_session_user
from lms_admin.auth.router import router as auth_router
from lms_admin.core.config import Settings, get_settings
from lms_admin.core.context import AppContext, get_context
from lms_admin.core.exceptions import AccessDenied, LoginRequired
from lms_admin.core.logging import configure_logging
from lms_admin.templating import render

logger = logging.getLogger(__name__)


def _is_api(request: Request) -> bool:
    return "/api/" in request.url.path


async def login_required_handler(request: Request, exc: LoginRequired):
    if _is_api(request):
        return JSONResponse(
            {"success": False, "error": "Authentication required"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return redirect("/login")


async def access_denied_handler(request: Request, exc: AccessDenied):
    if _is_api(request):
        return JSONResponse({"success": False, "error": exc.message}, status_code=status.HTTP_403_FORBIDDEN)
    return render(
        request,
        "errors/403.html",
        {"page_title": "Access Denied", "message": exc.message},
        status_code=status.HTTP_403_FORBIDDEN,
    )


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """Build the application.

    ``context`` is normally created in the lifespan from ``settings``; passing
    one in (tests) makes it available immediately and skips the Redis connect loop.
    """
    settings = settings or (context.settings if context else get_settings())
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if context is not None:
            yield
            return
        app.state.context = AppContext.from_settings(settings)
        connect_task = None
        if app.state.context.cache is not None:
            connect_task = asyncio.create_task(app.state.context.cache.connect_forever())
        logger.info("LMS admin started")
        try:
            yield
        finally:
            if connect_task is not None:
                connect_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await connect_task
            await app.state.context.close()
            logger.info("LMS admin stopped")

    app = FastAPI(title="LMS Admin", lifespan=lifespan)
    if context is not None:
        app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age,
        https_only=settings.session_https_only,
    )

    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(AccessDenied, access_denied_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(course_router)
    app.include_router(quiz_router)
    app.include_router(settings_router)
    app.include_router(users_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request):
        if get_session_user(request) is not None:
            return redirect("/dashboard")
        return redirect("/login")

    @app.get("/home", include_in_schema=False)
    async def home():
        return redirect("/dashboard")

    @app.get("/courses", include_in_schema=False)
    async def courses():
        return redirect("/course")

    @app.get("/api/status")
    async def api_status(request: Request):
        ctx = get_context(request)
        return {
            "message": "LMS API is running",
            "status": "ok",
            "services": {
                "database": "connected" if ctx.engine is not None else "disconnected",
                "redis": "connected" if ctx.cache is not None and ctx.cache.is_open else "disconnected",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        ctx = get_context(request)
        try:
            async with ctx.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as e:
            logger.warning("Database health check failed: %s", e)
            database = "error"
        return {
            "status": "ok",
            "database": database,
            "redis": "ok" if ctx.cache is not None and ctx.cache.is_open else "error",
        }

    return app


app = create_app()
