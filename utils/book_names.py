import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BibleBook:
    """One entry of the book catalog (English name, Hindi name, aliases)"""
    english: str
    hindi: str
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def spellings(self) -> Tuple[str, ...]:
        """Every full spelling a verse store may use for this book"""
        return (self.english, self.hindi) + self.aliases


# Catalog of the 66 books in canonical order. Aliases are alternate full
# names that appear as the stored book name in some translations.
BIBLE_BOOKS: Tuple[BibleBook, ...] = (
    # Old Testament
    BibleBook("Genesis", "उत्पत्ति"),
    BibleBook("Exodus", "निर्गमन"),
    BibleBook("Leviticus", "लैव्यव्यवस्था"),
    BibleBook("Numbers", "गिनती"),
    BibleBook("Deuteronomy", "व्यवस्थाविवरण"),
    BibleBook("Joshua", "यहोशू"),
    BibleBook("Judges", "न्यायियों"),
    BibleBook("Ruth", "रूत"),
    BibleBook("1 Samuel", "1 शमूएल"),
    BibleBook("2 Samuel", "2 शमूएल"),
    BibleBook("1 Kings", "1 राजाओं"),
    BibleBook("2 Kings", "2 राजाओं"),
    BibleBook("1 Chronicles", "1 इतिहास"),
    BibleBook("2 Chronicles", "2 इतिहास"),
    BibleBook("Ezra", "एज्रा"),
    BibleBook("Nehemiah", "नहेम्याह"),
    BibleBook("Esther", "एस्तेर"),
    BibleBook("Job", "अय्यूब"),
    BibleBook("Psalms", "भजन संहिता", ("Psalm",)),
    BibleBook("Proverbs", "नीतिवचन"),
    BibleBook("Ecclesiastes", "सभोपदेशक"),
    BibleBook("Song of Solomon", "श्रेष्ठगीत", ("Song of Songs", "Songs of Solomon")),
    BibleBook("Isaiah", "यशायाह"),
    BibleBook("Jeremiah", "यिर्मयाह"),
    BibleBook("Lamentations", "विलापगीत"),
    BibleBook("Ezekiel", "यहेजकेल"),
    BibleBook("Daniel", "दानिय्येल"),
    BibleBook("Hosea", "होशे"),
    BibleBook("Joel", "योएल"),
    BibleBook("Amos", "आमोस"),
    BibleBook("Obadiah", "ओबद्याह"),
    BibleBook("Jonah", "योना"),
    BibleBook("Micah", "मीका"),
    BibleBook("Nahum", "नहूम"),
    BibleBook("Habakkuk", "हबक्कूक"),
    BibleBook("Zephaniah", "सपन्याह"),
    BibleBook("Haggai", "हाग्गै"),
    BibleBook("Zechariah", "जकर्याह"),
    BibleBook("Malachi", "मलाकी"),
    # New Testament
    BibleBook("Matthew", "मत्ती"),
    BibleBook("Mark", "मरकुस"),
    BibleBook("Luke", "लूका"),
    BibleBook("John", "यूहन्ना"),
    BibleBook("Acts", "प्रेरितों के काम", ("Acts of the Apostles",)),
    BibleBook("Romans", "रोमियों"),
    BibleBook("1 Corinthians", "1 कुरिन्थियों"),
    BibleBook("2 Corinthians", "2 कुरिन्थियों"),
    BibleBook("Galatians", "गलातियों"),
    BibleBook("Ephesians", "इफिसियों"),
    BibleBook("Philippians", "फिलिप्पियों"),
    BibleBook("Colossians", "कुलुस्सियों"),
    BibleBook("1 Thessalonians", "1 थिस्सलुनीकियों"),
    BibleBook("2 Thessalonians", "2 थिस्सलुनीकियों"),
    BibleBook("1 Timothy", "1 तीमुथियुस"),
    BibleBook("2 Timothy", "2 तीमुथियुस"),
    BibleBook("Titus", "तीतुस"),
    BibleBook("Philemon", "फिलेमोन"),
    BibleBook("Hebrews", "इब्रानियों"),
    BibleBook("James", "याकूब"),
    BibleBook("1 Peter", "1 पतरस"),
    BibleBook("2 Peter", "2 पतरस"),
    BibleBook("1 John", "1 यूहन्ना"),
    BibleBook("2 John", "2 यूहन्ना"),
    BibleBook("3 John", "3 यूहन्ना"),
    BibleBook("Jude", "यहूदा"),
    BibleBook("Revelation", "प्रकाशितवाक्य", ("Revelations",)),
)

# Common abbreviations -> canonical English book name (keys are lower-case)
BOOK_ABBREVIATIONS = {
    # Old Testament
    "gen": "Genesis", "gn": "Genesis",
    "ex": "Exodus", "exod": "Exodus",
    "lev": "Leviticus", "lv": "Leviticus",
    "num": "Numbers", "nm": "Numbers",
    "deut": "Deuteronomy", "dt": "Deuteronomy",
    "josh": "Joshua", "jos": "Joshua",
    "judg": "Judges", "jdg": "Judges",
    "ruth": "Ruth", "rth": "Ruth",
    "1 sam": "1 Samuel", "1sam": "1 Samuel", "1sa": "1 Samuel",
    "2 sam": "2 Samuel", "2sam": "2 Samuel", "2sa": "2 Samuel",
    "1 kings": "1 Kings", "1 kgs": "1 Kings", "1kgs": "1 Kings", "1ki": "1 Kings",
    "2 kings": "2 Kings", "2 kgs": "2 Kings", "2kgs": "2 Kings", "2ki": "2 Kings",
    "1 chr": "1 Chronicles", "1chr": "1 Chronicles", "1ch": "1 Chronicles",
    "2 chr": "2 Chronicles", "2chr": "2 Chronicles", "2ch": "2 Chronicles",
    "ezr": "Ezra",
    "neh": "Nehemiah",
    "esth": "Esther", "est": "Esther",
    "jb": "Job",
    "ps": "Psalms", "psa": "Psalms", "psalm": "Psalms", "pslm": "Psalms",
    "prov": "Proverbs", "prv": "Proverbs",
    "eccl": "Ecclesiastes", "ecc": "Ecclesiastes", "qoh": "Ecclesiastes",
    "song": "Song of Solomon", "songs": "Song of Solomon", "sos": "Song of Solomon",
    "isa": "Isaiah",
    "jer": "Jeremiah",
    "lam": "Lamentations",
    "ezek": "Ezekiel", "eze": "Ezekiel", "ezk": "Ezekiel",
    "dan": "Daniel", "dn": "Daniel",
    "hos": "Hosea",
    "obad": "Obadiah", "ob": "Obadiah",
    "jnh": "Jonah",
    "mic": "Micah",
    "nah": "Nahum",
    "hab": "Habakkuk",
    "zeph": "Zephaniah", "zep": "Zephaniah",
    "hag": "Haggai",
    "zech": "Zechariah", "zec": "Zechariah",
    "mal": "Malachi",
    # New Testament
    "matt": "Matthew", "mt": "Matthew",
    "mk": "Mark", "mrk": "Mark",
    "lk": "Luke",
    "jn": "John", "jhn": "John",
    "ac": "Acts",
    "rom": "Romans", "rm": "Romans",
    "1 cor": "1 Corinthians", "1cor": "1 Corinthians", "1co": "1 Corinthians",
    "2 cor": "2 Corinthians", "2cor": "2 Corinthians", "2co": "2 Corinthians",
    "gal": "Galatians",
    "eph": "Ephesians",
    "phil": "Philippians", "php": "Philippians",
    "col": "Colossians",
    "1 thess": "1 Thessalonians", "1thess": "1 Thessalonians", "1th": "1 Thessalonians",
    "2 thess": "2 Thessalonians", "2thess": "2 Thessalonians", "2th": "2 Thessalonians",
    "1 tim": "1 Timothy", "1tim": "1 Timothy", "1ti": "1 Timothy",
    "2 tim": "2 Timothy", "2tim": "2 Timothy", "2ti": "2 Timothy",
    "tit": "Titus",
    "philem": "Philemon", "phm": "Philemon",
    "heb": "Hebrews",
    "jas": "James",
    "1 pet": "1 Peter", "1pet": "1 Peter", "1pe": "1 Peter",
    "2 pet": "2 Peter", "2pet": "2 Peter", "2pe": "2 Peter",
    "1 jn": "1 John", "1jn": "1 John", "1 john": "1 John",
    "2 jn": "2 John", "2jn": "2 John", "2 john": "2 John",
    "3 jn": "3 John", "3jn": "3 John", "3 john": "3 John",
    "jude": "Jude",
    "rev": "Revelation", "rv": "Revelation",
}

_CATALOG_INDEX = {
    spelling.lower(): book
    for book in BIBLE_BOOKS
    for spelling in book.spellings
}


def find_catalog_book(name: str) -> Optional[BibleBook]:
    """Look up a catalog entry by any English, Hindi or alias spelling"""
    return _CATALOG_INDEX.get(name.strip().lower())


def _exact_match(name: str, stored_books: Sequence[str]) -> Optional[str]:
    for stored in stored_books:
        if stored.lower() == name:
            return stored
    return None


def _partial_match(name: str, stored_books: Sequence[str]) -> Optional[str]:
    # Prefix matches rank ahead of other containment matches
    containing = None
    for stored in stored_books:
        lowered = stored.lower()
        if lowered.startswith(name):
            return stored
        if containing is None and (name in lowered or lowered in name):
            containing = stored
    return containing


def _candidate_spellings(name: str) -> List[str]:
    candidates = []
    canonical = BOOK_ABBREVIATIONS.get(name)
    if canonical:
        candidates.append(canonical)
    book = find_catalog_book(canonical or name)
    if book:
        candidates.extend(book.spellings)
    return candidates


def resolve_book_name(book_name: str, stored_books: Iterable[str]) -> Optional[str]:
    """
    Resolve free-text book name against the book names stored for a version.

    Tries, in order: case-insensitive exact match, partial (bidirectional
    containment) match, then the abbreviation table and the Hindi/English
    catalog. Returns the stored spelling, or None when nothing matches.
    """
    name = (book_name or "").strip().lower()
    if not name:
        return None

    stored_books = list(stored_books)

    match = _exact_match(name, stored_books)
    if match:
        return match

    match = _partial_match(name, stored_books)
    if match:
        return match

    for candidate in _candidate_spellings(name):
        match = _exact_match(candidate.lower(), stored_books)
        if match:
            return match

    return None


class BookNameNormalizer:
    """Maps user supplied book names to the `book` value stored for a version"""

    def __init__(self, store):
        self.store = store

    async def normalize(self, book_name: str, version_id: int) -> Optional[str]:
        if not book_name or not book_name.strip():
            return None

        stored_books = await self.store.list_distinct_books(version_id)
        resolved = resolve_book_name(book_name, stored_books)

        if resolved is None:
            logger.debug("Could not resolve book name %r for version %s", book_name, version_id)
        return resolved
