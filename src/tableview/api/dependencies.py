from fastapi import Request

from .services import BrowserService, SearchService

SESSION_COOKIE = "tableview_session"


def get_browser_service(request: Request) -> BrowserService:
    """Retrieve the configured BrowserService from FastAPI app state."""
    service = getattr(request.app.state, "browser_service", None)
    if service is None:
        raise RuntimeError("Browser service is not configured")
    return service


def get_search_service(request: Request) -> SearchService:
    """Retrieve the search service from FastAPI app state."""
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        raise RuntimeError("Search service is not configured")
    return service


def get_session_id(request: Request) -> str:
    """Session id assigned by the session middleware in ``create_app``."""
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise RuntimeError("Session middleware is not installed")
    return session_id
