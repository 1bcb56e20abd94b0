"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import DatabaseConnection
from consumer.worker import WordWorker
from api.dependencies import get_streaming_reporter
from api.routes import jobs_router, words_router
from api.services.streaming import StreamingProgressReporter
from api.services.submission import WordListValidationError
from api.websocket import stream_words_endpoint
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup; an unreachable store is fatal
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    worker = None
    if settings.run_worker_in_api:
        worker = WordWorker.from_connections(db, redis_client, worker_id="api-worker")
        worker.start()
        logger.info("Started in-process word worker")

    yield

    # Shutdown
    if worker is not None:
        await worker.stop()

    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="Vocabulary Word Queue",
    description="Bulk vocabulary ingestion with AI-generated definitions and quiz questions",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WordListValidationError)
async def word_list_exception_handler(request: Request, exc: WordListValidationError):
    """Rejected word lists are client errors."""
    return JSONResponse(
        status_code=400,
        content={"error": exc.reason, "detail": exc.message}
    )


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


# Include routers
app.include_router(jobs_router)
app.include_router(words_router)


# WebSocket endpoints
@app.websocket("/ws/words/stream")
async def websocket_stream_words(
    websocket: WebSocket,
    reporter: StreamingProgressReporter = Depends(get_streaming_reporter)
):
    """WebSocket variant of the streaming word submission."""
    await stream_words_endpoint(websocket, reporter)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Vocabulary Word Queue",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
