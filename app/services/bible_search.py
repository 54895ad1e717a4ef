import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from app.services.count_cache import SearchCountCache
from app.services.verse_accessor import SearchResult, VerseAccessor
from db.verse_store import VerseStore
from utils.book_names import BookNameNormalizer
from utils.reference_parser import ChapterReference, KeywordQuery, ReferenceParser, VerseReference

logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 100


class BibleSearchError(Exception):
    """Base class for errors raised by the search service"""


class VersionNotFoundError(BibleSearchError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Bible version {code} not found")


class SearchFailedError(BibleSearchError):
    def __init__(self, message: str = "Failed to search Bible verses"):
        super().__init__(message)


@dataclass
class SearchResponse:
    results: List[SearchResult]
    commentary: Optional[Any] = None


@dataclass
class PaginatedSearchResponse:
    results: List[SearchResult] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False
    page: int = 1
    limit: int = 20


class BibleSearchService:
    """
    Entry point for verse search.

    Queries are classified by the reference parser, book names are resolved
    against the version's stored books, and the verse accessor performs the
    reads. Keyword searches are capped at `result_limit` rows when not
    paginated; paginated keyword searches take their total count from the
    shared count cache.

    Any exception raised by the storage layer is logged and re-raised as
    SearchFailedError. Unknown version codes raise VersionNotFoundError before
    any verse is read.
    """

    def __init__(
        self,
        store: VerseStore,
        count_cache: Optional[SearchCountCache] = None,
        result_limit: int = DEFAULT_RESULT_LIMIT,
        commentary_agent=None,
    ):
        self.store = store
        self.parser = ReferenceParser()
        self.normalizer = BookNameNormalizer(store)
        self.accessor = VerseAccessor(store)
        self.count_cache = count_cache if count_cache is not None else SearchCountCache()
        self.result_limit = result_limit
        self.commentary_agent = commentary_agent

    async def search(self, query: str, version: str, book: Optional[str] = None) -> SearchResponse:
        """Search without pagination; keyword scans return at most `result_limit` verses"""
        bible_version = await self._resolve_version(version)
        query = (query or "").strip()
        if not query:
            return SearchResponse(results=[])

        try:
            parsed = self.parser.parse(query)
            if isinstance(parsed, KeywordQuery):
                results = await self._keyword_search(bible_version.id, parsed.term, book, take=self.result_limit)
            else:
                results = await self._lookup_reference(bible_version.id, parsed)
        except Exception as exc:
            logger.exception("Bible search failed for %r (%s)", query, bible_version.code)
            raise SearchFailedError() from exc

        return SearchResponse(results=results)

    async def search_paginated(
        self,
        query: str,
        version: str,
        book: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> PaginatedSearchResponse:
        """
        Search with pagination.

        References (single verse, range or chapter) are returned in full and
        ignore page/limit. Keyword searches return one page, with the total
        match count cached per (version, term, book) so every page reports an
        accurate `has_more`.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        bible_version = await self._resolve_version(version)
        query = (query or "").strip()
        if not query:
            return PaginatedSearchResponse(page=page, limit=limit)

        try:
            parsed = self.parser.parse(query)
            if not isinstance(parsed, KeywordQuery):
                results = await self._lookup_reference(bible_version.id, parsed)
                return PaginatedSearchResponse(
                    results=results,
                    total_count=len(results),
                    has_more=False,
                    page=page,
                    limit=limit,
                )

            version_id = bible_version.id
            book_name = await self._resolve_book_filter(version_id, book)
            if book and book_name is None:
                return PaginatedSearchResponse(page=page, limit=limit)

            cache_key = self.count_cache.make_key(version_id, parsed.term, book_name)
            total_count = await self.count_cache.get_count(
                cache_key,
                lambda: self.accessor.count_keyword_matches(version_id, parsed.term, book=book_name),
            )
            results = await self.accessor.keyword_scan(
                version_id,
                parsed.term,
                book=book_name,
                skip=(page - 1) * limit,
                take=limit,
            )
        except Exception as exc:
            logger.exception("Paginated Bible search failed for %r (%s, page %s)", query, bible_version.code, page)
            raise SearchFailedError() from exc

        return PaginatedSearchResponse(
            results=results,
            total_count=total_count,
            has_more=total_count > page * limit,
            page=page,
            limit=limit,
        )

    async def search_with_commentary(self, query: str, version: str, book: Optional[str] = None) -> SearchResponse:
        """Run `search` and attach an AI commentary when verses were found"""
        response = await self.search(query, version, book)
        if response.results and self.commentary_agent is not None:
            response.commentary = await self.commentary_agent.generate(query, response.results, version.strip().upper())
        return response

    async def _resolve_version(self, version: str):
        code = (version or "").strip().upper()
        if not code:
            raise VersionNotFoundError(code)

        try:
            bible_version = await self.store.find_version(code)
        except Exception as exc:
            logger.exception("Failed to look up Bible version %s", code)
            raise SearchFailedError() from exc

        if bible_version is None or not bible_version.is_active:
            raise VersionNotFoundError(code)
        return bible_version

    async def _resolve_book_filter(self, version_id: int, book: Optional[str]) -> Optional[str]:
        if not book or not book.strip():
            return None
        book_name = await self.normalizer.normalize(book, version_id)
        if book_name is None:
            logger.info("Book filter %r does not exist in version %s", book, version_id)
        return book_name

    async def _keyword_search(
        self, version_id: int, term: str, book: Optional[str], take: Optional[int] = None
    ) -> List[SearchResult]:
        book_name = await self._resolve_book_filter(version_id, book)
        if book and book_name is None:
            return []
        return await self.accessor.keyword_scan(version_id, term, book=book_name, take=take)

    async def _lookup_reference(self, version_id: int, reference) -> List[SearchResult]:
        book_name = await self.normalizer.normalize(reference.book, version_id)
        if book_name is None:
            logger.info("Could not resolve book in %s for version %s", reference, version_id)
            return []

        if isinstance(reference, ChapterReference):
            return await self.accessor.chapter(version_id, book_name, reference.chapter)

        if isinstance(reference, VerseReference) and reference.is_range:
            return await self.accessor.verse_range(
                version_id, book_name, reference.chapter, reference.start_verse, reference.end_verse
            )

        return await self.accessor.exact_verse(version_id, book_name, reference.chapter, reference.start_verse)
