"""
Upload Benchmark Service - Main Application
FastAPI app that streams uploads to disk and records performance telemetry.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.formparsers import MultiPartParser

from shared_schemas.common import ErrorResponse
from app.api import health, upload
from app.benchmark.writer import BenchmarkLogWriter, FileBenchmarkSink
from app.core.config import settings
from app.core.errors import UploadError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Uploaded parts larger than this are spooled to a temporary file
MultiPartParser.spool_max_size = settings.MULTIPART_SPOOL_MAX_SIZE


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Runs on startup and shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")

    writer = BenchmarkLogWriter(
        sink=FileBenchmarkSink(settings.BENCHMARK_LOG_PATH),
        max_queue_size=settings.BENCHMARK_QUEUE_MAX_SIZE,
        policy=settings.BENCHMARK_QUEUE_POLICY,
    )
    writer.start()
    app.state.benchmark_writer = writer

    logger.info(f"Benchmark log: {settings.BENCHMARK_LOG_PATH}")
    logger.info(f"{settings.APP_NAME} started successfully")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await writer.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Streams multipart uploads to a filesystem path and reports transfer telemetry",
    version=settings.APP_VERSION,
    lifespan=lifespan
)


# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# Include API routers
app.include_router(upload.router)
app.include_router(health.router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "upload": "POST /upload?dest=<path> (multipart field 'file')",
            "health": "/health"
        },
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }


@app.exception_handler(UploadError)
async def upload_exception_handler(request: Request, exc: UploadError):
    """Render pipeline errors as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump()
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        timeout_keep_alive=7200,  # 2 hours for very large file uploads
        limit_concurrency=100
    )
