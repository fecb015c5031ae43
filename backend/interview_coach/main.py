"""Main FastAPI application for the Interview Coach backend."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interview_coach.config import settings

# Configure logging to output to stdout
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)
from interview_coach.models import init_db
from interview_coach.routers import interview_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    await init_db()
    logger.info(
        f"Interview Coach ready (provider={settings.llm_provider}, "
        f"database={settings.database_url})"
    )
    yield


app = FastAPI(
    title="Interview Coach",
    description="Multi-turn mock interview chat with graded answers and coaching signals",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(interview_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint returning API info."""
    return {
        "name": "Interview Coach API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "interview_coach.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
