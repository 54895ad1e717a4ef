# Database models for Bible versions and their verses
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class BibleVersion(Base):
    """A translation/edition of the Bible (e.g. ESV, IBP)"""
    __tablename__ = "bible_versions"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True, index=True)  # "ESV"
    name = Column(String(200), nullable=False)
    language = Column(String(10), nullable=False, default="en")  # "en", "hi"
    publisher = Column(String(200))
    year = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    verses = relationship(
        "BibleVerse",
        back_populates="version",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<BibleVersion(code='{self.code}', name='{self.name}')>"


class BibleVerse(Base):
    """A single verse; `book` holds the book name exactly as imported"""
    __tablename__ = "bible_verses"
    __table_args__ = (
        UniqueConstraint("version_id", "book", "chapter", "verse", name="uq_bible_verses_reference"),
        CheckConstraint("chapter > 0", name="ck_bible_verses_chapter_positive"),
        CheckConstraint("verse > 0", name="ck_bible_verses_verse_positive"),
        Index("idx_bible_verses_version_book_chapter_verse", "version_id", "book", "chapter", "verse"),
    )

    id = Column(Integer, primary_key=True)
    version_id = Column(Integer, ForeignKey("bible_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    book = Column(String(100), nullable=False)
    chapter = Column(Integer, nullable=False)
    verse = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    version = relationship("BibleVersion", back_populates="verses")

    @property
    def reference(self) -> str:
        return f"{self.book} {self.chapter}:{self.verse}"

    def __repr__(self):
        return f"<BibleVerse(reference='{self.reference}', text='{self.text[:50]}...')>"
