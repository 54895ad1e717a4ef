import logging
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app import config
from db.models import Base, BibleVerse, BibleVersion

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    config.DATABASE_URL,
    echo=config.SQL_ECHO,
    future=True,
    pool_pre_ping=True,  # Verify connections before use
    pool_recycle=300,    # Recycle connections every 5 minutes
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db():
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables():
    """Create all tables and indexes"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")


async def drop_tables():
    """Drop all tables - useful for development"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("Dropped all tables")


async def get_table_stats():
    """Get verse and book counts for every Bible version"""
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(
                BibleVersion.code,
                func.count(BibleVerse.id),
                func.count(func.distinct(BibleVerse.book)),
            )
            .outerjoin(BibleVerse, BibleVerse.version_id == BibleVersion.id)
            .group_by(BibleVersion.code)
            .order_by(BibleVersion.code)
        )

        stats = {}
        for code, verse_count, book_count in result.all():
            stats[code] = {
                "total_verses": verse_count or 0,
                "unique_books": book_count or 0,
            }
        return stats
