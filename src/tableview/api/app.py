import logging
import secrets
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tableview.errors import TableViewError

from .dependencies import SESSION_COOKIE
from .frontend import STATIC_DIR
from .frontend import router as frontend_router
from .routers.database import router as database_router
from .routers.search import router as search_router
from .services import BrowserService, SearchService
from .session_store import SessionStore

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)
logger = logging.getLogger("tableview.api")


def create_app(
    browser_service: BrowserService,
    search_service: Optional[SearchService] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the FastAPI app for the table browser and the live search endpoint.

    Args:
        browser_service: Service instance that resolves sessions to databases and runs the
            browse/export flows.
        search_service: Service backing ``GET /search``. When omitted the route answers 500.
        session_store: Per-session connection registry, closed on shutdown when given.

    Raises:
        ValueError: When browser_service is not provided.
    """
    if browser_service is None:
        raise ValueError("browser_service is required")

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        if session_store is not None:
            session_store.close_all()
        if search_service is not None:
            search_service.close()

    app = FastAPI(title="Table Viewer", lifespan=lifespan)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception at {request.method} {request.url}: {exc}")
        logger.error(f"Exception details: {traceback.format_exc()}")

        if isinstance(exc, HTTPException):
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc),
                "type": type(exc).__name__,
            },
        )

    @app.exception_handler(TableViewError)
    async def table_view_error_handler(request: Request, exc: TableViewError):
        logger.warning(f"{type(exc).__name__} at {request.method} {request.url}: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Request: {request.method} {request.url.path}")
        try:
            response = await call_next(request)
            logger.info(f"Response: {request.method} {request.url.path} - {response.status_code}")
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - {e}")
            raise

    # Registered last so it runs first: every request carries a session id.
    @app.middleware("http")
    async def assign_session(request: Request, call_next):
        session_id = request.cookies.get(SESSION_COOKIE)
        is_new = not session_id
        if is_new:
            session_id = secrets.token_urlsafe(24)
        request.state.session_id = session_id
        response = await call_next(request)
        if is_new:
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    app.state.browser_service = browser_service
    app.state.search_service = search_service
    app.state.session_store = session_store
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(frontend_router)
    app.include_router(database_router)
    app.include_router(search_router)

    logger.info("FastAPI app created successfully")
    return app
