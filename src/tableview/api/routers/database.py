import logging

from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from tableview.errors import (
    DatabaseConnectionError,
    NotConnectedError,
    QueryError,
    TableViewError,
)
from tableview.export import ExportResult
from tableview.settings import ConnectionSettings

from ..dependencies import get_browser_service, get_session_id
from ..frontend import render_page
from ..schemas import QueryExportRequest
from ..services import BrowserService

logger = logging.getLogger("tableview.api")

router = APIRouter(prefix="/database", tags=["database"])


@router.post("/connect", response_class=HTMLResponse)
def connect(
    request: Request,
    host: str = Form(default=""),
    port: str = Form(default=""),
    user: str = Form(default=""),
    password: str = Form(default=""),
    database: str = Form(default=""),
    session_id: str = Depends(get_session_id),
    service: BrowserService = Depends(get_browser_service),
) -> HTMLResponse:
    """Store the submitted credentials for this session and list its tables."""
    try:
        port_number = int(port) if port else 3306
    except ValueError:
        return render_page(request, error=f"Connection failed: invalid port '{port}'")

    settings = ConnectionSettings(
        host=host or "localhost",
        port=port_number,
        user=user,
        password=password,
        database=database,
    )
    try:
        tables = service.connect(session_id, settings)
    except TableViewError as exc:
        return render_page(request, error=f"Connection failed: {exc}")
    return render_page(request, success="Connected successfully!", tables=tables)


@router.post("/view-table", response_class=HTMLResponse)
def view_table(
    request: Request,
    table_name: str = Form(default="", alias="tableName"),
    session_id: str = Depends(get_session_id),
    service: BrowserService = Depends(get_browser_service),
) -> HTMLResponse:
    """Render the selected table's columns and rows."""
    try:
        page = service.view_table(session_id, table_name)
    except NotConnectedError:
        return render_page(request, error="Please connect to database first")
    except TableViewError as exc:
        return render_page(request, error=f"Failed to fetch table data: {exc}")
    return render_page(
        request,
        tables=page.tables,
        selected_table=page.selected_table,
        data={"columns": page.data.columns, "rows": page.data.rows},
    )


@router.post("/disconnect", response_class=HTMLResponse)
def disconnect(
    request: Request,
    session_id: str = Depends(get_session_id),
    service: BrowserService = Depends(get_browser_service),
) -> HTMLResponse:
    """Forget this session's connection."""
    service.disconnect(session_id)
    return render_page(request, success="Disconnected from database")


@router.get("/export/{format}/{table_name:path}")
def export_table(
    format: str,
    table_name: str,
    session_id: str = Depends(get_session_id),
    service: BrowserService = Depends(get_browser_service),
) -> Response:
    """Download a whole table as csv, json or excel."""
    try:
        result = service.export_table(session_id, format, table_name)
    except TableViewError as exc:
        return _export_error(exc)
    return _download(result)


@router.post("/export-query")
def export_query(
    payload: QueryExportRequest,
    session_id: str = Depends(get_session_id),
    service: BrowserService = Depends(get_browser_service),
) -> Response:
    """Run a custom SQL query and download its rows."""
    try:
        result = service.export_query(
            session_id, payload.query, payload.format, payload.filename
        )
    except TableViewError as exc:
        return _export_error(exc)
    return _download(result)


def _export_error(exc: TableViewError) -> JSONResponse:
    if isinstance(exc, (QueryError, DatabaseConnectionError)):
        logger.error(f"Export failed: {exc}")
        return JSONResponse(status_code=500, content={"error": f"Export failed: {exc}"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def _download(result: ExportResult) -> Response:
    # Ensure filename is ASCII-safe for better cross-platform compatibility
    safe_filename = result.filename.encode("ascii", "ignore").decode("ascii")
    safe_filename = safe_filename.replace('"', "").replace("/", "_").replace("\\", "_")

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{safe_filename}"',
            "Content-Length": str(len(result.content)),
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
