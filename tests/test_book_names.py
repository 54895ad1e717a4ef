import pytest

from utils.book_names import (
    BIBLE_BOOKS,
    BOOK_ABBREVIATIONS,
    BookNameNormalizer,
    find_catalog_book,
    resolve_book_name,
)

ENGLISH_BOOKS = [book.english for book in BIBLE_BOOKS]
HINDI_BOOKS = [book.hindi for book in BIBLE_BOOKS]


def test_catalog_has_66_books_in_canonical_order():
    assert len(BIBLE_BOOKS) == 66
    assert ENGLISH_BOOKS[0] == "Genesis"
    assert ENGLISH_BOOKS[38] == "Malachi"
    assert ENGLISH_BOOKS[39] == "Matthew"
    assert ENGLISH_BOOKS[-1] == "Revelation"


def test_every_abbreviation_names_a_catalog_book():
    for canonical in BOOK_ABBREVIATIONS.values():
        assert canonical in ENGLISH_BOOKS


@pytest.mark.parametrize("abbreviation, expected", sorted(BOOK_ABBREVIATIONS.items()))
def test_abbreviations_resolve_against_english_books(abbreviation, expected):
    assert resolve_book_name(abbreviation, ENGLISH_BOOKS) == expected


@pytest.mark.parametrize("name, expected", [
    ("John", "John"),
    ("john", "John"),
    ("  GENESIS ", "Genesis"),
    ("1 john", "1 John"),
    ("Song of Solomon", "Song of Solomon"),
])
def test_exact_match_is_case_insensitive(name, expected):
    assert resolve_book_name(name, ENGLISH_BOOKS) == expected


def test_partial_match_prefers_prefix():
    assert resolve_book_name("Psalm", ENGLISH_BOOKS) == "Psalms"
    assert resolve_book_name("Revelations", ENGLISH_BOOKS) == "Revelation"
    assert resolve_book_name("Phil", ENGLISH_BOOKS) == "Philippians"


def test_partial_match_falls_back_to_containment():
    assert resolve_book_name("Corinth", ENGLISH_BOOKS) == "1 Corinthians"
    assert resolve_book_name("Thessalonians", ENGLISH_BOOKS) == "1 Thessalonians"


def test_unknown_book_returns_none():
    assert resolve_book_name("xyzzy", ENGLISH_BOOKS) is None
    assert resolve_book_name("", ENGLISH_BOOKS) is None
    assert resolve_book_name("   ", ENGLISH_BOOKS) is None
    assert resolve_book_name("John", []) is None


def test_english_names_resolve_to_hindi_store():
    assert resolve_book_name("John", HINDI_BOOKS) == "यूहन्ना"
    assert resolve_book_name("Jn", HINDI_BOOKS) == "यूहन्ना"
    assert resolve_book_name("1 John", HINDI_BOOKS) == "1 यूहन्ना"
    assert resolve_book_name("Psalm", HINDI_BOOKS) == "भजन संहिता"


def test_hindi_names_resolve_to_english_store():
    assert resolve_book_name("यूहन्ना", ENGLISH_BOOKS) == "John"
    assert resolve_book_name("उत्पत्ति", ENGLISH_BOOKS) == "Genesis"


def test_aliases_resolve_to_stored_spelling():
    assert resolve_book_name("Song of Songs", ENGLISH_BOOKS) == "Song of Solomon"
    assert resolve_book_name("Acts of the Apostles", ENGLISH_BOOKS) == "Acts"
    # A store that uses the alias itself
    assert resolve_book_name("Psalms", ["Genesis", "Psalm"]) == "Psalm"


def test_catalog_lookup():
    assert find_catalog_book("psalm").english == "Psalms"
    assert find_catalog_book("प्रकाशितवाक्य").english == "Revelation"
    assert find_catalog_book("Unknown") is None


@pytest.mark.asyncio
async def test_normalizer_uses_books_of_the_requested_version(store):
    normalizer = BookNameNormalizer(store)

    assert await normalizer.normalize("jn", 1) == "John"
    assert await normalizer.normalize("John", 2) == "यूहन्ना"
    assert await normalizer.normalize("Hezekiah", 1) is None
    assert await normalizer.normalize("  ", 1) is None


@pytest.mark.asyncio
async def test_normalizer_only_returns_stored_books(store):
    normalizer = BookNameNormalizer(store)
    stored = set(await store.list_distinct_books(2))

    for name in ["Genesis", "John", "1 John", "gen"]:
        assert await normalizer.normalize(name, 2) in stored
