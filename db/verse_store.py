import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import BibleVerse, BibleVersion

logger = logging.getLogger(__name__)


@dataclass
class VersionInfo:
    """Bible version summary with its verse count"""
    id: int
    code: str
    name: str
    language: str
    publisher: Optional[str]
    year: Optional[int]
    is_active: bool
    verse_count: int


class VerseStore(ABC):
    """
    Read access to the persisted verse collection.

    Every method is a coroutine; implementations never write. Verse lists are
    returned in the order documented on each method.
    """

    @abstractmethod
    async def find_version(self, code: str) -> Optional[BibleVersion]:
        ...

    @abstractmethod
    async def list_versions(self, active_only: bool = True) -> List[VersionInfo]:
        """Versions ordered by code"""

    @abstractmethod
    async def list_distinct_books(self, version_id: int) -> List[str]:
        """Book names in canonical (import) order"""

    @abstractmethod
    async def list_chapters(self, version_id: int, book: str) -> List[int]:
        """Chapter numbers ascending"""

    @abstractmethod
    async def find_verse(self, version_id: int, book: str, chapter: int, verse: int) -> Optional[BibleVerse]:
        ...

    @abstractmethod
    async def find_verses_in_range(
        self, version_id: int, book: str, chapter: int, verse_min: int, verse_max: int
    ) -> List[BibleVerse]:
        """Inclusive range ordered by verse"""

    @abstractmethod
    async def find_verses_in_chapter(self, version_id: int, book: str, chapter: int) -> List[BibleVerse]:
        """Whole chapter ordered by verse"""

    @abstractmethod
    async def search_verse_text(
        self,
        version_id: int,
        term: str,
        book: Optional[str] = None,
        skip: int = 0,
        take: Optional[int] = None,
    ) -> List[BibleVerse]:
        """Case-insensitive substring match ordered by book, chapter, verse"""

    @abstractmethod
    async def count_verse_text_matches(self, version_id: int, term: str, book: Optional[str] = None) -> int:
        ...


class SqlAlchemyVerseStore(VerseStore):
    """VerseStore backed by an async SQLAlchemy session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_version(self, code: str) -> Optional[BibleVersion]:
        query = select(BibleVersion).where(BibleVersion.code == code)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_versions(self, active_only: bool = True) -> List[VersionInfo]:
        verse_count = func.count(BibleVerse.id)
        query = (
            select(BibleVersion, verse_count)
            .outerjoin(BibleVerse, BibleVerse.version_id == BibleVersion.id)
            .group_by(BibleVersion.id)
            .order_by(BibleVersion.code)
        )
        if active_only:
            query = query.where(BibleVersion.is_active.is_(True))

        result = await self.session.execute(query)
        return [
            VersionInfo(
                id=version.id,
                code=version.code,
                name=version.name,
                language=version.language,
                publisher=version.publisher,
                year=version.year,
                is_active=version.is_active,
                verse_count=count or 0,
            )
            for version, count in result.all()
        ]

    async def list_distinct_books(self, version_id: int) -> List[str]:
        # Lowest verse id per book gives the order the books were imported in
        query = (
            select(BibleVerse.book)
            .where(BibleVerse.version_id == version_id)
            .group_by(BibleVerse.book)
            .order_by(func.min(BibleVerse.id))
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_chapters(self, version_id: int, book: str) -> List[int]:
        query = (
            select(BibleVerse.chapter)
            .where(BibleVerse.version_id == version_id, BibleVerse.book == book)
            .distinct()
            .order_by(BibleVerse.chapter)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_verse(self, version_id: int, book: str, chapter: int, verse: int) -> Optional[BibleVerse]:
        query = select(BibleVerse).where(
            BibleVerse.version_id == version_id,
            BibleVerse.book == book,
            BibleVerse.chapter == chapter,
            BibleVerse.verse == verse,
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def find_verses_in_range(
        self, version_id: int, book: str, chapter: int, verse_min: int, verse_max: int
    ) -> List[BibleVerse]:
        query = (
            select(BibleVerse)
            .where(
                BibleVerse.version_id == version_id,
                BibleVerse.book == book,
                BibleVerse.chapter == chapter,
                BibleVerse.verse.between(verse_min, verse_max),
            )
            .order_by(BibleVerse.verse)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_verses_in_chapter(self, version_id: int, book: str, chapter: int) -> List[BibleVerse]:
        query = (
            select(BibleVerse)
            .where(
                BibleVerse.version_id == version_id,
                BibleVerse.book == book,
                BibleVerse.chapter == chapter,
            )
            .order_by(BibleVerse.verse)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _text_match_conditions(self, version_id: int, term: str, book: Optional[str]) -> Sequence:
        conditions = [
            BibleVerse.version_id == version_id,
            # autoescape keeps user supplied % and _ literal
            BibleVerse.text.icontains(term, autoescape=True),
        ]
        if book:
            conditions.append(BibleVerse.book == book)
        return conditions

    async def search_verse_text(
        self,
        version_id: int,
        term: str,
        book: Optional[str] = None,
        skip: int = 0,
        take: Optional[int] = None,
    ) -> List[BibleVerse]:
        query = (
            select(BibleVerse)
            .where(*self._text_match_conditions(version_id, term, book))
            .order_by(BibleVerse.book, BibleVerse.chapter, BibleVerse.verse)
        )
        if skip:
            query = query.offset(skip)
        if take is not None:
            query = query.limit(take)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_verse_text_matches(self, version_id: int, term: str, book: Optional[str] = None) -> int:
        query = select(func.count(BibleVerse.id)).where(*self._text_match_conditions(version_id, term, book))
        result = await self.session.execute(query)
        count = result.scalar()
        logger.debug("Counted %s verses matching %r (version %s, book %s)", count, term, version_id, book or "all")
        return count or 0
