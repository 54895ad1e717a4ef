import argparse
import asyncio
import json
import os
import time
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from db.db import AsyncSessionLocal, create_tables, drop_tables, get_table_stats
from db.models import BibleVerse, BibleVersion

# Known Bible versions and their metadata
BIBLE_VERSIONS = {
    "ESV": {
        "name": "English Standard Version",
        "language": "en",
        "publisher": "Crossway",
        "year": 2001,
        "file": "ESV_bible.json",
    },
    "NIV": {
        "name": "New International Version",
        "language": "en",
        "publisher": "Biblica",
        "year": 2011,
        "file": "NIV_bible.json",
    },
    "IBP": {
        "name": "Indian Bible Publishers Hindi Bible",
        "language": "hi",
        "publisher": "Indian Bible Publishers",
        "year": 1978,
        "file": "IBP_bible.json",
    },
}

BATCH_SIZE = 500
DEFAULT_BIBLES_DIR = os.path.join("public", "bibles")


def get_version_config(code: str) -> Dict[str, Any]:
    """Metadata for a version code, with generic values for unknown codes"""
    return BIBLE_VERSIONS.get(code, {
        "name": code,
        "language": "en",
        "publisher": "Unknown",
        "year": time.localtime().tm_year,
    })


def version_code_from_filename(file_name: str) -> str:
    """'esv_bible.json' -> 'ESV'"""
    base = os.path.basename(file_name)
    return base.replace("_bible.json", "").replace(".json", "").upper()


def load_bible_file(file_path: str) -> Dict[str, Dict[str, Dict[str, str]]]:
    """Load Bible JSON shaped as {book: {chapter: {verse: text}}}"""
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Bible data file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object of books in {file_path}")
    return data


def _positive_int(value: str, location: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number {value!r} at {location}")
    if number < 1:
        raise ValueError(f"Expected a positive number at {location}, got {number}")
    return number


def iter_verse_rows(version_id: int, bible_data: Dict[str, Dict[str, Dict[str, str]]]) -> Iterator[Dict[str, Any]]:
    """Flatten Bible JSON into verse rows, keeping the file's book order"""
    for book, chapters in bible_data.items():
        for chapter_key, verses in chapters.items():
            chapter = _positive_int(chapter_key, f"{book} {chapter_key}")
            for verse_key, text in verses.items():
                verse = _positive_int(verse_key, f"{book} {chapter_key}:{verse_key}")
                yield {
                    "version_id": version_id,
                    "book": book,
                    "chapter": chapter,
                    "verse": verse,
                    "text": text.strip(),
                }


def count_verses(bible_data: Dict[str, Dict[str, Dict[str, str]]]) -> int:
    return sum(len(verses) for chapters in bible_data.values() for verses in chapters.values())


class BibleImporter:
    """Imports Bible versions from JSON files into the verse store"""

    def __init__(self, session_factory=AsyncSessionLocal, batch_size: int = BATCH_SIZE):
        self.session_factory = session_factory
        self.batch_size = batch_size
        self.stats = {
            "versions_processed": 0,
            "verses_imported": 0,
            "errors": 0,
            "start_time": time.time(),
        }

    async def ensure_bible_version(self, session, code: str, version_config: Dict[str, Any]) -> BibleVersion:
        """Create the version or refresh its metadata, and mark it active"""
        result = await session.execute(select(BibleVersion).where(BibleVersion.code == code))
        version = result.scalar_one_or_none()

        if version is None:
            version = BibleVersion(code=code)
            session.add(version)

        version.name = version_config["name"]
        version.language = version_config.get("language", "en")
        version.publisher = version_config.get("publisher")
        version.year = version_config.get("year")
        version.is_active = True

        await session.flush()
        return version

    async def import_version(self, code: str, file_path: str) -> int:
        """Import one version; returns the number of verses read from the file"""
        code = code.upper()
        print(f"\n🔄 Starting import for {code}...")

        try:
            print(f"📖 Reading file: {file_path}")
            bible_data = load_bible_file(file_path)

            async with self.session_factory() as session:
                version = await self.ensure_bible_version(session, code, get_version_config(code))
                await session.commit()
                print(f"✅ Bible version ready: {version.name} (ID: {version.id})")

                total = await self.import_verses(session, version.id, bible_data)

            self.stats["versions_processed"] += 1
            print(f"✅ Successfully imported {code}")
            return total

        except Exception as e:
            print(f"❌ Error importing {code}: {str(e)}")
            self.stats["errors"] += 1
            raise

    async def import_verses(self, session, version_id: int, bible_data) -> int:
        """Insert verses in batches; rows already present are skipped"""
        total = count_verses(bible_data)
        print(f"📊 Total verses to import: {total:,}")

        processed = 0
        batch: List[Dict[str, Any]] = []
        for row in iter_verse_rows(version_id, bible_data):
            batch.append(row)
            if len(batch) >= self.batch_size:
                await self._insert_batch(session, batch, processed, total)
                processed += len(batch)
                batch = []

        if batch:
            await self._insert_batch(session, batch, processed, total)
            processed += len(batch)

        self.stats["verses_imported"] += processed
        print(f"✅ Imported {processed:,} verses")
        return processed

    async def _insert_batch(self, session, rows: List[Dict[str, Any]], processed: int, total: int):
        statement = (
            pg_insert(BibleVerse)
            .values(rows)
            .on_conflict_do_nothing(constraint="uq_bible_verses_reference")
        )
        try:
            await session.execute(statement)
            await session.commit()
        except Exception as e:
            print(f"❌ Batch import error: {str(e)}")
            await session.rollback()
            raise

        done = processed + len(rows)
        progress = done / total * 100 if total else 100.0
        print(f"⏳ Progress: {progress:.1f}% ({done:,}/{total:,} verses)")

    async def import_all(self, bibles_dir: str = DEFAULT_BIBLES_DIR) -> None:
        """Import every *.json file of a directory; failed files are skipped"""
        if not os.path.isdir(bibles_dir):
            raise FileNotFoundError(f"Bibles directory not found: {bibles_dir}")

        files = sorted(f for f in os.listdir(bibles_dir) if f.endswith(".json"))
        print(f"📁 Found {len(files)} Bible files to import")

        for file_name in files:
            code = version_code_from_filename(file_name)
            try:
                await self.import_version(code, os.path.join(bibles_dir, file_name))
            except Exception as e:
                print(f"⚠️ Skipping {file_name} due to error: {str(e)}")

    async def delete_version(self, code: str) -> bool:
        """Delete a version; its verses go with it"""
        code = code.upper()
        async with self.session_factory() as session:
            result = await session.execute(select(BibleVersion).where(BibleVersion.code == code))
            version = result.scalar_one_or_none()
            if version is None:
                print(f"⚠️ Bible version {code} not found")
                return False

            await session.delete(version)
            await session.commit()
            print(f"🗑️  Deleted Bible version {code} and its verses")
            return True

    def display_stats(self) -> None:
        duration = max(time.time() - self.stats["start_time"], 0.001)
        print("\n📈 Import Statistics:")
        print(f"⏱️  Duration: {duration:.2f} seconds")
        print(f"📚 Versions processed: {self.stats['versions_processed']}")
        print(f"📝 Verses imported: {self.stats['verses_imported']:,}")
        print(f"❌ Errors: {self.stats['errors']}")
        print(f"⚡ Rate: {round(self.stats['verses_imported'] / duration):,} verses/second")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import Bible versions from JSON files")
    parser.add_argument("version", nargs="?", help="Version code, e.g. ESV")
    parser.add_argument("file", nargs="?", help="Path to the version's JSON file")
    parser.add_argument("--all", action="store_true", help="Import every JSON file in --dir")
    parser.add_argument("--dir", default=DEFAULT_BIBLES_DIR, help="Directory used with --all")
    parser.add_argument("--delete", metavar="CODE", help="Delete a version and all of its verses")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before importing")
    parser.add_argument("--batch-size", "-b", type=int, default=BATCH_SIZE, help="Verses per insert batch")
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Run the importer from the command line"""
    args = build_parser().parse_args(argv)
    importer = BibleImporter(batch_size=args.batch_size)

    print("🚀 Bible Import Tool")
    print("=" * 50)

    try:
        if args.reset:
            print("⚠️ Dropping all Bible tables...")
            await drop_tables()
        await create_tables()

        if args.delete:
            await importer.delete_version(args.delete)
            return 0

        if args.all:
            await importer.import_all(args.dir)
        elif args.version and args.file:
            await importer.import_version(args.version, args.file)
        elif args.reset:
            print("\n🎉 Tables recreated")
            return 0
        else:
            build_parser().print_help()
            print("\nAvailable versions:", ", ".join(BIBLE_VERSIONS))
            return 1

        importer.display_stats()

        print("\n🗄️  Database contents:")
        for code, counts in (await get_table_stats()).items():
            print(f"   {code}: {counts['total_verses']:,} verses in {counts['unique_books']} books")

        print("\n🎉 Import completed successfully!")
        return 0

    except Exception as e:
        print(f"\n💥 Import failed: {str(e)}")
        return 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
