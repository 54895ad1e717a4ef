# Import FastAPI router and dependencies
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app import config
from app.agents.commentary_agent import AICommentary, CommentaryAgent
from app.services.bible_search import BibleSearchService, SearchFailedError, VersionNotFoundError
from app.services.count_cache import SearchCountCache
from db.db import get_db
from db.verse_store import SqlAlchemyVerseStore, VerseStore
from utils.book_names import BookNameNormalizer

logger = logging.getLogger(__name__)

# Initialize the router
router = APIRouter(prefix="/api/bible", tags=["Bible Search"])

# Shared across requests: the only cross-request state of the search core
count_cache = SearchCountCache(ttl_seconds=config.COUNT_CACHE_TTL_SECONDS)
commentary_agent = CommentaryAgent(api_key=config.GROQ_API_KEY)

SEARCH_FAILED_MESSAGE = "Failed to search Bible verses"


# Pydantic models for request/response
class VerseResult(BaseModel):
    book: str
    chapter: str
    verse: str
    text: str


class PaginatedSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: List[VerseResult]
    total_count: int = Field(..., alias="totalCount")
    page: int
    limit: int
    has_more: bool = Field(..., alias="hasMore")
    query: str
    version: str
    book: Optional[str] = None


class SearchRequest(BaseModel):
    query: str = Field(..., description="Bible reference (e.g. 'John 3:16'), range ('John 3:16-18'), chapter ('Psalm 23') or keywords")
    version: str = Field(default=config.DEFAULT_BIBLE_VERSION, description="Bible version code (e.g. ESV, NIV, IBP)")
    book: Optional[str] = Field(default=None, description="Restrict keyword searches to one book")
    include_commentary: bool = Field(default=False, description="Include AI commentary on the verses found")


class SearchResponse(BaseModel):
    results: List[VerseResult]
    query: str
    version: str
    book: Optional[str] = None
    commentary: Optional[AICommentary] = None


class BibleVersionResponse(BaseModel):
    id: str
    name: str
    language: str
    description: str


# Dependencies
async def get_verse_store(db: AsyncSession = Depends(get_db)) -> VerseStore:
    return SqlAlchemyVerseStore(db)


def get_search_service(store: VerseStore = Depends(get_verse_store)) -> BibleSearchService:
    return BibleSearchService(
        store,
        count_cache=count_cache,
        result_limit=config.SEARCH_RESULT_LIMIT,
        commentary_agent=commentary_agent,
    )


def _verse_results(results) -> List[VerseResult]:
    return [VerseResult(**result.to_dict()) for result in results]


# Define API endpoints for Bible search
@router.get("/search", response_model=PaginatedSearchResponse)
async def search_bible(
    q: Optional[str] = Query(None, description="Bible reference, range, chapter or keywords"),
    version: str = Query(config.DEFAULT_BIBLE_VERSION, description="Bible version code"),
    book: Optional[str] = Query(None, description="Restrict keyword searches to one book"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    service: BibleSearchService = Depends(get_search_service),
):
    """
    Paginated verse search

    - /api/bible/search?q=John 3:16
    - /api/bible/search?q=John 3:16-18&version=ESV
    - /api/bible/search?q=love your enemies&page=2&limit=20
    """
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")

    query = q.strip()
    try:
        response = await service.search_paginated(query, version, book, page, limit)
    except VersionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SearchFailedError:
        raise HTTPException(status_code=500, detail=SEARCH_FAILED_MESSAGE)

    return PaginatedSearchResponse(
        results=_verse_results(response.results),
        total_count=response.total_count,
        page=page,
        limit=limit,
        has_more=response.has_more,
        query=query,
        version=version.strip().upper(),
        book=book,
    )


@router.post("/search", response_model=SearchResponse)
async def search_bible_with_commentary(
    request: SearchRequest,
    service: BibleSearchService = Depends(get_search_service),
):
    """Unpaginated search, optionally with AI commentary on the verses found"""
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")

    query = request.query.strip()
    try:
        if request.include_commentary:
            response = await service.search_with_commentary(query, request.version, request.book)
        else:
            response = await service.search(query, request.version, request.book)
    except VersionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SearchFailedError:
        raise HTTPException(status_code=500, detail=SEARCH_FAILED_MESSAGE)

    return SearchResponse(
        results=_verse_results(response.results),
        query=query,
        version=request.version.strip().upper(),
        book=request.book,
        commentary=response.commentary,
    )


@router.get("/versions", response_model=List[BibleVersionResponse])
async def get_bible_versions(store: VerseStore = Depends(get_verse_store)):
    """List active Bible versions"""
    try:
        versions = await store.list_versions(active_only=True)
    except Exception:
        logger.exception("Error fetching Bible versions")
        raise HTTPException(status_code=500, detail="Failed to fetch Bible versions")

    response = []
    for version in versions:
        description = version.name
        if version.publisher:
            description += f" by {version.publisher}"
        if version.year:
            description += f" ({version.year})"
        description += f" - {version.verse_count:,} verses"

        response.append(BibleVersionResponse(
            id=version.code,
            name=version.name,
            language="Hindi" if version.language == "hi" else "English",
            description=description,
        ))
    return response


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Logos Bible Search API",
        "features": {
            "verse_lookup": True,
            "verse_range_lookup": True,
            "chapter_lookup": True,
            "keyword_search": True,
            "pagination": True,
            "ai_commentary": commentary_agent.agent is not None,
        }
    }


async def _get_version_or_404(store: VerseStore, version: str):
    code = version.strip().upper()
    bible_version = await store.find_version(code)
    if bible_version is None or not bible_version.is_active:
        raise HTTPException(status_code=404, detail=f"Bible version {code} not found")
    return bible_version


async def _resolve_book(store: VerseStore, book: str, version_id: int) -> str:
    resolved = await BookNameNormalizer(store).normalize(book, version_id)
    return resolved or book


@router.get("/{version}/books", response_model=List[str])
async def get_bible_books(version: str, store: VerseStore = Depends(get_verse_store)):
    """Books of a version in canonical order"""
    try:
        bible_version = await _get_version_or_404(store, version)
        return await store.list_distinct_books(bible_version.id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching books for %s", version)
        raise HTTPException(status_code=500, detail="Failed to fetch books")


@router.get("/{version}/{book}/chapters", response_model=List[str])
async def get_book_chapters(version: str, book: str, store: VerseStore = Depends(get_verse_store)):
    """Chapter numbers of a book"""
    try:
        bible_version = await _get_version_or_404(store, version)
        book_name = await _resolve_book(store, book, bible_version.id)
        chapters = await store.list_chapters(bible_version.id, book_name)
        return [str(chapter) for chapter in chapters]
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching chapters for %s %s", version, book)
        raise HTTPException(status_code=500, detail="Failed to fetch chapters")


@router.get("/{version}/{book}/{chapter}", response_model=Dict[str, str])
async def get_chapter_verses(
    version: str,
    book: str,
    chapter: int,
    store: VerseStore = Depends(get_verse_store),
):
    """All verses of a chapter as {"1": text, "2": text, ...}"""
    try:
        bible_version = await _get_version_or_404(store, version)
        book_name = await _resolve_book(store, book, bible_version.id)
        verses = await store.find_verses_in_chapter(bible_version.id, book_name, chapter)
        return {str(verse.verse): verse.text for verse in verses}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching verses for %s %s %s", version, book, chapter)
        raise HTTPException(status_code=500, detail="Failed to fetch chapter verses")
