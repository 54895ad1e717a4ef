import re
from dataclasses import dataclass
from typing import Optional, Union


# Define data classes for the three query shapes
@dataclass(frozen=True)
class VerseReference:
    """A single verse ("John 3:16") or a verse range ("John 3:16-18")"""
    book: str
    chapter: int
    start_verse: int
    end_verse: Optional[int] = None

    @property
    def is_range(self) -> bool:
        return self.end_verse is not None and self.end_verse != self.start_verse

    def __str__(self) -> str:
        if self.is_range:
            return f"{self.book} {self.chapter}:{self.start_verse}-{self.end_verse}"
        return f"{self.book} {self.chapter}:{self.start_verse}"


@dataclass(frozen=True)
class ChapterReference:
    """A whole chapter ("Psalm 23")"""
    book: str
    chapter: int

    def __str__(self) -> str:
        return f"{self.book} {self.chapter}"


@dataclass(frozen=True)
class KeywordQuery:
    """Free text searched for inside verse text"""
    term: str


ParsedQuery = Union[VerseReference, ChapterReference, KeywordQuery]

# Book Chapter:Verse with an optional -EndVerse
VERSE_REFERENCE_PATTERN = re.compile(
    r'^(?P<book>.+?)\s+(?P<chapter>[1-9]\d*)\s*:\s*(?P<verse>[1-9]\d*)'
    r'(?:\s*[-–]\s*(?P<end_verse>[1-9]\d*))?$'
)
# Book Chapter
CHAPTER_REFERENCE_PATTERN = re.compile(r'^(?P<book>.+?)\s+(?P<chapter>[1-9]\d*)$')


class ReferenceParser:
    """
    Classifies a search query as a verse reference, a chapter reference or a
    keyword search.

    Only the shape of the query is recognised here: book text is returned as
    typed and resolved against the verse store by the book name normalizer.
    Anything that does not fit a reference pattern (including non-numeric
    chapter/verse parts) falls through to keyword search.
    """

    def parse(self, query: str) -> ParsedQuery:
        text = (query or "").strip()

        match = VERSE_REFERENCE_PATTERN.match(text)
        if match:
            end_verse = match.group("end_verse")
            return VerseReference(
                book=match.group("book").strip(),
                chapter=int(match.group("chapter")),
                start_verse=int(match.group("verse")),
                end_verse=int(end_verse) if end_verse else None,
            )

        match = CHAPTER_REFERENCE_PATTERN.match(text)
        if match:
            return ChapterReference(
                book=match.group("book").strip(),
                chapter=int(match.group("chapter")),
            )

        return KeywordQuery(term=text)
