from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
# Path segments must escape "/" too, which the built-in urlencode filter keeps.
templates.env.filters["quote_path"] = lambda value: quote(str(value), safe="")

router = APIRouter()


def render_page(
    request: Request,
    *,
    error: Optional[str] = None,
    success: Optional[str] = None,
    tables: Optional[list[str]] = None,
    selected_table: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
) -> HTMLResponse:
    """Render the single browser page; every page flow goes through here."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "error": error,
            "success": success,
            "tables": tables,
            "selected_table": selected_table,
            "data": data,
        },
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request) -> HTMLResponse:
    """Empty state: connection form only."""
    return render_page(request)
