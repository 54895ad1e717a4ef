import pytest

from db.models import BibleVerse, BibleVersion
from db.verse_store import VerseStore, VersionInfo


ESV_VERSES = [
    ("Genesis", 1, 1, "In the beginning, God created the heavens and the earth."),
    ("Psalms", 23, 1, "The LORD is my shepherd; I shall not want."),
    ("Psalms", 23, 2, "He makes me lie down in green pastures. He leads me beside still waters."),
    ("Psalms", 23, 3, "He restores my soul. He leads me in paths of righteousness for his name's sake."),
    ("Psalms", 23, 4, "Even though I walk through the valley of the shadow of death, I will fear no evil, "
                      "for you are with me; your rod and your staff, they comfort me."),
    ("Psalms", 23, 5, "You prepare a table before me in the presence of my enemies; "
                      "you anoint my head with oil; my cup overflows."),
    ("Psalms", 23, 6, "Surely goodness and mercy shall follow me all the days of my life, "
                      "and I shall dwell in the house of the LORD forever."),
    ("Matthew", 5, 43, "You have heard that it was said, 'You shall love your neighbor and hate your enemy.'"),
    ("Matthew", 5, 44, "But I say to you, Love your enemies and pray for those who persecute you,"),
    ("Luke", 6, 27, "But I say to you who hear, Love your enemies, do good to those who hate you,"),
    ("Luke", 6, 35, "But love your enemies, and do good, and lend, expecting nothing in return,"),
    ("John", 3, 15, "that whoever believes in him may have eternal life."),
    ("John", 3, 16, "For God so loved the world, that he gave his only Son, that whoever believes "
                    "in him should not perish but have eternal life."),
    ("John", 3, 17, "For God did not send his Son into the world to condemn the world, "
                    "but in order that the world might be saved through him."),
    ("John", 3, 18, "Whoever believes in him is not condemned, but whoever does not believe is condemned "
                    "already, because he has not believed in the name of the only Son of God."),
    ("1 Corinthians", 13, 4, "Love is patient and kind; love does not envy or boast; it is not arrogant"),
    ("1 John", 4, 8, "Anyone who does not love does not know God, because God is love."),
    ("Revelation", 22, 21, "The grace of the Lord Jesus be with all. Amen."),
]

IBP_VERSES = [
    ("उत्पत्ति", 1, 1, "आदि में परमेश्‍वर ने आकाश और पृथ्वी की सृष्टि की।"),
    ("यूहन्ना", 3, 16, "क्योंकि परमेश्‍वर ने जगत से ऐसा प्रेम रखा कि उसने अपना एकलौता पुत्र दे दिया।"),
    ("1 यूहन्ना", 4, 8, "जो प्रेम नहीं रखता वह परमेश्‍वर को नहीं जानता, क्योंकि परमेश्‍वर प्रेम है।"),
]


class FakeVerseStore(VerseStore):
    """In-memory VerseStore holding ORM instances, ordered the way the SQL store orders them"""

    def __init__(self, versions, verses):
        self.versions = {version.code: version for version in versions}
        self.verses = sorted(verses, key=lambda verse: verse.id)
        self.count_calls = 0
        self.search_calls = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise RuntimeError("connection refused")

    def _in_version(self, version_id):
        return [verse for verse in self.verses if verse.version_id == version_id]

    async def find_version(self, code):
        self._check()
        return self.versions.get(code)

    async def list_versions(self, active_only=True):
        self._check()
        infos = []
        for version in sorted(self.versions.values(), key=lambda v: v.code):
            if active_only and not version.is_active:
                continue
            infos.append(VersionInfo(
                id=version.id,
                code=version.code,
                name=version.name,
                language=version.language,
                publisher=version.publisher,
                year=version.year,
                is_active=version.is_active,
                verse_count=len(self._in_version(version.id)),
            ))
        return infos

    async def list_distinct_books(self, version_id):
        self._check()
        books = []
        for verse in self._in_version(version_id):
            if verse.book not in books:
                books.append(verse.book)
        return books

    async def list_chapters(self, version_id, book):
        self._check()
        return sorted({verse.chapter for verse in self._in_version(version_id) if verse.book == book})

    async def find_verse(self, version_id, book, chapter, verse):
        self._check()
        for row in self._in_version(version_id):
            if (row.book, row.chapter, row.verse) == (book, chapter, verse):
                return row
        return None

    async def find_verses_in_range(self, version_id, book, chapter, verse_min, verse_max):
        self._check()
        rows = [
            row for row in self._in_version(version_id)
            if row.book == book and row.chapter == chapter and verse_min <= row.verse <= verse_max
        ]
        return sorted(rows, key=lambda row: row.verse)

    async def find_verses_in_chapter(self, version_id, book, chapter):
        self._check()
        rows = [row for row in self._in_version(version_id) if row.book == book and row.chapter == chapter]
        return sorted(rows, key=lambda row: row.verse)

    def _matching(self, version_id, term, book):
        term = term.lower()
        rows = [
            row for row in self._in_version(version_id)
            if term in row.text.lower() and (not book or row.book == book)
        ]
        return sorted(rows, key=lambda row: (row.book, row.chapter, row.verse))

    async def search_verse_text(self, version_id, term, book=None, skip=0, take=None):
        self._check()
        self.search_calls.append((version_id, term, book, skip, take))
        rows = self._matching(version_id, term, book)[skip:]
        return rows if take is None else rows[:take]

    async def count_verse_text_matches(self, version_id, term, book=None):
        self._check()
        self.count_calls += 1
        return len(self._matching(version_id, term, book))


def make_verses(version_id, rows, start_id=1):
    return [
        BibleVerse(id=start_id + index, version_id=version_id, book=book, chapter=chapter, verse=verse, text=text)
        for index, (book, chapter, verse, text) in enumerate(rows)
    ]


def make_versions():
    return [
        BibleVersion(id=1, code="ESV", name="English Standard Version", language="en",
                     publisher="Crossway", year=2001, is_active=True),
        BibleVersion(id=2, code="IBP", name="Indian Bible Publishers Hindi Bible", language="hi",
                     publisher="Indian Bible Publishers", year=1978, is_active=True),
        BibleVersion(id=3, code="OLD", name="Retired Version", language="en", is_active=False),
    ]


@pytest.fixture
def store():
    verses = make_verses(1, ESV_VERSES) + make_verses(2, IBP_VERSES, start_id=1000)
    return FakeVerseStore(make_versions(), verses)


@pytest.fixture
def grace_store():
    """45 verses of Ephesians mentioning grace, for paging"""
    rows = [("Ephesians", 1 + index // 10, 1 + index % 10, f"Grace to you and peace ({index + 1})") for index in range(45)]
    return FakeVerseStore(make_versions(), make_verses(1, rows))
