from typing import Callable, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core
from core.config import settings
from core.logging_config import logger
from core.user_context import UserContext, build_user_context
from dependencies.auth import GuardRedirect

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.me import router as me_router
from routers.views import router as views_router
from routers.admin import router as admin_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(context_factory: Optional[Callable[[], UserContext]] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="FindAbode client shell: session, profile and route guards",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup / shutdown: one user context per process
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.ENV})")
        factory = context_factory or build_user_context
        context = factory()
        await context.start()
        app.state.user_context = context

    @app.on_event("shutdown")
    async def on_shutdown():
        context = getattr(app.state, "user_context", None)
        if context is not None:
            await context.shutdown()
        logger.info("Shutdown complete")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(GuardRedirect)
    async def handle_guard_redirect(request: Request, exc: GuardRedirect):
        query = {}
        if exc.notice:
            query["notice"] = exc.notice
        if exc.reason:
            query["reason"] = exc.reason
        url = exc.redirect_to
        if query:
            url = f"{url}?{urlencode(query)}"
        return RedirectResponse(url, status_code=303)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500, 502):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(auth_router)
    app.include_router(me_router)
    app.include_router(views_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
