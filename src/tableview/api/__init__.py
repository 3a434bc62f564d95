from .app import create_app
from .services import BrowserService, MySQLBrowserService, SearchService
from .session_store import SessionStore

__all__ = ["create_app", "BrowserService", "MySQLBrowserService", "SearchService", "SessionStore"]
