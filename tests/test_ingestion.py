import json

import pytest
from sqlalchemy.dialects import postgresql

from db.models import BibleVersion
import utils.ingestion as ingestion
from utils.ingestion import (
    BibleImporter,
    count_verses,
    get_version_config,
    iter_verse_rows,
    load_bible_file,
    version_code_from_filename,
)

SAMPLE_BIBLE = {
    "Genesis": {
        "1": {"1": "In the beginning, God created the heavens and the earth. ", "2": "The earth was without form"},
        "2": {"1": "Thus the heavens and the earth were finished"},
    },
    "John": {
        "3": {"16": "For God so loved the world", "17": "For God did not send his Son"},
    },
}


class DummyResult:
    def __init__(self, value=None):
        self.value = value

    def scalar_one_or_none(self):
        return self.value


class DummySession:
    def __init__(self, existing=None):
        self.existing = existing
        self.statements = []
        self.added = []
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, statement):
        self.statements.append(statement)
        return DummyResult(self.existing)

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        for obj in self.added:
            if obj.id is None:
                obj.id = 7

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


def test_version_code_from_filename():
    assert version_code_from_filename("ESV_bible.json") == "ESV"
    assert version_code_from_filename("/data/bibles/ibp_bible.json") == "IBP"
    assert version_code_from_filename("niv.json") == "NIV"


def test_known_and_unknown_version_config():
    assert get_version_config("IBP")["language"] == "hi"
    unknown = get_version_config("XYZ")
    assert unknown["name"] == "XYZ"
    assert unknown["publisher"] == "Unknown"


def test_load_bible_file(tmp_path):
    path = tmp_path / "ESV_bible.json"
    path.write_text(json.dumps(SAMPLE_BIBLE), encoding="utf-8")

    assert load_bible_file(str(path)) == SAMPLE_BIBLE


def test_load_bible_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bible_file(str(tmp_path / "missing.json"))

    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_bible_file(str(path))


def test_iter_verse_rows_flattens_in_file_order():
    rows = list(iter_verse_rows(3, SAMPLE_BIBLE))

    assert [(row["book"], row["chapter"], row["verse"]) for row in rows] == [
        ("Genesis", 1, 1), ("Genesis", 1, 2), ("Genesis", 2, 1), ("John", 3, 16), ("John", 3, 17),
    ]
    assert all(row["version_id"] == 3 for row in rows)
    assert rows[0]["text"] == "In the beginning, God created the heavens and the earth."
    assert count_verses(SAMPLE_BIBLE) == 5


@pytest.mark.parametrize("bad, location", [
    ({"Ruth": {"one": {"1": "x"}}}, "Ruth one"),
    ({"Ruth": {"1": {"0": "x"}}}, "Ruth 1:0"),
    ({"Ruth": {"-2": {"1": "x"}}}, "Ruth -2"),
])
def test_iter_verse_rows_rejects_bad_numbers(bad, location):
    with pytest.raises(ValueError) as excinfo:
        list(iter_verse_rows(1, bad))
    assert location in str(excinfo.value)


@pytest.mark.asyncio
async def test_ensure_bible_version_creates_active_version():
    session = DummySession()

    version = await BibleImporter().ensure_bible_version(session, "ESV", get_version_config("ESV"))

    assert session.added == [version]
    assert version.id == 7
    assert version.name == "English Standard Version"
    assert version.publisher == "Crossway"
    assert version.is_active is True


@pytest.mark.asyncio
async def test_ensure_bible_version_reactivates_existing():
    existing = BibleVersion(id=2, code="NIV", name="Old name", language="en", is_active=False)
    session = DummySession(existing=existing)

    version = await BibleImporter().ensure_bible_version(session, "NIV", get_version_config("NIV"))

    assert version is existing
    assert session.added == []
    assert version.name == "New International Version"
    assert version.is_active is True


@pytest.mark.asyncio
async def test_import_verses_inserts_in_batches():
    session = DummySession()
    importer = BibleImporter(batch_size=2)

    imported = await importer.import_verses(session, 3, SAMPLE_BIBLE)

    assert imported == 5
    assert len(session.statements) == 3
    assert session.commits == 3
    assert importer.stats["verses_imported"] == 5

    sql = str(session.statements[0].compile(dialect=postgresql.dialect()))
    assert sql.startswith("INSERT INTO bible_verses")
    assert "ON CONFLICT ON CONSTRAINT uq_bible_verses_reference DO NOTHING" in sql


@pytest.mark.asyncio
async def test_import_verses_rolls_back_failed_batch():
    class FailingSession(DummySession):
        async def execute(self, statement):
            raise RuntimeError("disk full")

    session = FailingSession()

    with pytest.raises(RuntimeError):
        await BibleImporter().import_verses(session, 3, SAMPLE_BIBLE)
    assert session.rollbacks == 1


@pytest.fixture
def table_calls(monkeypatch):
    """Replace the table helpers used by the command line with recorders"""
    calls = []

    async def fake_drop():
        calls.append("drop")

    async def fake_create():
        calls.append("create")

    async def fake_stats():
        return {"ESV": {"total_verses": 5, "unique_books": 2}}

    monkeypatch.setattr(ingestion, "drop_tables", fake_drop)
    monkeypatch.setattr(ingestion, "create_tables", fake_create)
    monkeypatch.setattr(ingestion, "get_table_stats", fake_stats)
    return calls


@pytest.mark.asyncio
async def test_main_reset_drops_then_recreates_tables(table_calls):
    assert await ingestion.main(["--reset"]) == 0
    assert table_calls == ["drop", "create"]


@pytest.mark.asyncio
async def test_main_import_keeps_existing_tables(table_calls, monkeypatch):
    imported = []

    async def fake_import(self, code, file_path):
        imported.append((code, file_path))
        return 5

    monkeypatch.setattr(BibleImporter, "import_version", fake_import)

    assert await ingestion.main(["ESV", "ESV_bible.json"]) == 0
    assert table_calls == ["create"]
    assert imported == [("ESV", "ESV_bible.json")]


@pytest.mark.asyncio
async def test_main_reset_before_import(table_calls, monkeypatch):
    async def fake_import(self, code, file_path):
        table_calls.append(f"import {code}")
        return 5

    monkeypatch.setattr(BibleImporter, "import_version", fake_import)

    assert await ingestion.main(["--reset", "NIV", "NIV_bible.json"]) == 0
    assert table_calls == ["drop", "create", "import NIV"]
