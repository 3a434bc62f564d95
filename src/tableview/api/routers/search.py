import logging

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from tableview.errors import TableViewError
from tableview.export import to_json

from ..dependencies import get_search_service
from ..services import SearchService

logger = logging.getLogger("tableview.api")

router = APIRouter(tags=["search"])


@router.get("/search")
def search(
    q: str = Query(default="", description="Substring to look for; digits also match exactly"),
    service: SearchService = Depends(get_search_service),
) -> Response:
    """Return at most ``limit`` matching records as a JSON array."""
    try:
        rows = service.search(q)
    except TableViewError as exc:
        logger.error(f"Search failed: {exc}")
        return JSONResponse(status_code=500, content={"error": "Database error"})
    return Response(content=to_json(rows), media_type="application/json")
