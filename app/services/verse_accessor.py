from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

from db.verse_store import VerseStore


@dataclass(frozen=True)
class SearchResult:
    """Read projection of a verse; chapter and verse are rendered as strings"""
    book: str
    chapter: str
    verse: str
    text: str

    @property
    def reference(self) -> str:
        return f"{self.book} {self.chapter}:{self.verse}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_search_result(verse) -> SearchResult:
    return SearchResult(
        book=verse.book,
        chapter=str(verse.chapter),
        verse=str(verse.verse),
        text=verse.text,
    )


def to_search_results(verses: Iterable) -> List[SearchResult]:
    return [to_search_result(verse) for verse in verses]


class VerseAccessor:
    """Turns a resolved lookup into a verse store read and projects the rows"""

    def __init__(self, store: VerseStore):
        self.store = store

    async def exact_verse(self, version_id: int, book: str, chapter: int, verse: int) -> List[SearchResult]:
        found = await self.store.find_verse(version_id, book, chapter, verse)
        return [to_search_result(found)] if found else []

    async def verse_range(
        self, version_id: int, book: str, chapter: int, start_verse: int, end_verse: int
    ) -> List[SearchResult]:
        verses = await self.store.find_verses_in_range(version_id, book, chapter, start_verse, end_verse)
        return to_search_results(verses)

    async def chapter(self, version_id: int, book: str, chapter: int) -> List[SearchResult]:
        verses = await self.store.find_verses_in_chapter(version_id, book, chapter)
        return to_search_results(verses)

    async def keyword_scan(
        self,
        version_id: int,
        term: str,
        book: Optional[str] = None,
        skip: int = 0,
        take: Optional[int] = None,
    ) -> List[SearchResult]:
        verses = await self.store.search_verse_text(version_id, term, book=book, skip=skip, take=take)
        return to_search_results(verses)

    async def count_keyword_matches(self, version_id: int, term: str, book: Optional[str] = None) -> int:
        return await self.store.count_verse_text_matches(version_id, term, book=book)
