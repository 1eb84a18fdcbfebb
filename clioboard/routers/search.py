from fastapi import APIRouter

from clioboard.models.summary import SearchResponse, SearchType
from clioboard.services import summary as summary_service

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("")
def search(q: str, type: SearchType | None = None, limit: int | None = None, summary: bool = False) -> SearchResponse:
    return summary_service.search(q, type, limit, summary)
