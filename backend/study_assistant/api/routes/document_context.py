"""Document Context API routes."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from study_assistant.api.deps import get_library_service, get_settings
from study_assistant.core.errors import ConfigurationError
from study_assistant.services.context_collector import collect_file_context
from study_assistant.services.library_service import LibraryService

router = APIRouter(prefix="/documents", tags=["document-context"])


# Request/Response Models
class SearchRequest(BaseModel):
    query: str
    n_results: int = 5
    min_score: float = 0.5


class SearchResult(BaseModel):
    document_id: str
    filename: str
    folder_id: Optional[str] = None
    score: float
    text: str


class SearchResponse(BaseModel):
    results: List[SearchResult]
    query: str


class ContextResponse(BaseModel):
    context: str
    length: int
    max_chars: int


# ============== Endpoints ============== #

@router.post("/search", response_model=SearchResponse)
async def search_documents(req: SearchRequest, library: LibraryService = Depends(get_library_service)):
    """Search documents with semantic query.

    Performs vector similarity search across embedded documents
    and returns the closest ones above the score threshold.
    """
    if not req.query or not req.query.strip():
        raise HTTPException(status_code=400, detail="Query cannot be empty")

    try:
        matches = await library.search(req.query, n_results=req.n_results, min_score=req.min_score)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Search failed: {str(e)}")

    results = []
    for match in matches:
        metadata = match.get("metadata") or {}
        results.append(SearchResult(
            document_id=match["document_id"],
            filename=metadata.get("filename", "unknown"),
            folder_id=metadata.get("folder_id"),
            score=match["score"],
            text=match.get("text", ""),
        ))

    return SearchResponse(results=results, query=req.query)


@router.get("/context", response_model=ContextResponse)
async def preview_context(
    max_chars: Optional[int] = None,
    library: LibraryService = Depends(get_library_service),
):
    """Show the notes context the next chat turn would send."""
    budget = max_chars or get_settings().context_max_chars
    context = collect_file_context(await library.list_folders(), budget)
    return ContextResponse(context=context, length=len(context), max_chars=budget)
