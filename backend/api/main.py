"""
FastAPI main application.
"""
import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from core.config import API_PREFIX, CORS_ORIGINS, LOG_LEVEL
from core.config_validator import config_validator
from core.index_builder import index_builder
from api.routes import search

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Show Transcript Search API",
    description="Full-text search over radio show transcripts and best-of compilations",
    version="1.0.0",
)


@app.on_event("startup")
async def validate_configuration():
    """Validate configuration on application startup."""

    logger.info("Validating configuration...")

    validation_result = config_validator.validate_all()

    for warning in validation_result["warnings"]:
        logger.warning(warning)

    # Log errors and fail if invalid
    if not validation_result["valid"]:
        for error in validation_result["errors"]:
            logger.error(error)
        logger.critical("Application startup aborted due to configuration errors.")
        raise SystemExit(1)

    logger.info("Configuration validated successfully")


@app.on_event("startup")
async def start_indexing():
    """Reuse the on-disk index if current, otherwise build it in the background."""
    if index_builder.ensure_ready():
        logger.info("Database already indexed. Skipping.")
        return

    # Keep a reference so the task is not garbage collected mid-build
    app.state.index_task = asyncio.create_task(index_builder.build())


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(search.router, prefix=API_PREFIX, tags=["search"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Show Transcript Search API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)
