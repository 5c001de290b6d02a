"""
Main entry point for the bacterial evolution worker service.

Serves one simulation worker session per ``/ws/worker`` connection, plus
the preset, session and health endpoints.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import logging
from config import settings
from routes.worker import router as worker_router, sessions
from utils.data_transform import ResponseBuilder
from utils.performance import process_memory_mb

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=settings.allow_credentials,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap unknown routes and unknown sessions in the error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ResponseBuilder.error(message=exc.detail, error_code=f"HTTP_{exc.status_code}")
    )


app.include_router(worker_router)


@app.get("/", tags=["Root"])
async def root():
    """Service information and endpoint map."""
    return ResponseBuilder.success(
        data={
            "message": "Bacterial Evolution Worker API",
            "version": settings.api_version,
            "status": "running",
            "websocket_endpoints": {"worker": "/ws/worker"},
            "worker_endpoints": {
                "presets": "/api/worker/presets",
                "sessions": "/api/worker/sessions",
                "health": "/health"
            }
        },
        message="Worker service is running"
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness, open worker sessions and process memory."""
    return ResponseBuilder.success(
        data={
            "status": "healthy",
            "version": settings.api_version,
            "timestamp": time.time(),
            "active_sessions": len(sessions),
            "memory_mb": process_memory_mb()
        },
        message="Service is healthy"
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.reload)
