# Import necessary modules and libraries for the application
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import config
from app.bible_router import router as bible_router
from db.db import create_tables, engine

# Configure root logging
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting Logos Bible Search...")
    await create_tables()
    logger.info("Bible search API is ready")

    yield

    # Shutdown
    logger.info("Shutting down Logos Bible Search...")
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="Logos Bible Search",
    description="Bible reference lookup, keyword search and AI commentary over a relational verse store",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(bible_router)


@app.get("/health")
async def root_health():
    """Root health check"""
    return {
        "status": "healthy",
        "message": "Logos Bible Search API",
        "version": "1.0.0",
        "docs": "/docs"
    }


if __name__ == "__main__":
    # Development server
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
