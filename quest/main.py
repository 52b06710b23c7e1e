"""
Python Quest - Main FastAPI Application

Challenge validation and progression engine for learners.
"""

import logging
import time

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import challenges_router, session_router, progress_router
from .api.deps import get_orchestrator
from .challenges import UnknownChallengeError
from .config import LOG_LEVEL
from .engine import ChallengeLockedError, SessionOrchestrator
from . import __version__

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Create app
app = FastAPI(
    title="Python Quest",
    description="Gamified Python exercises: run a submission, get a verdict, level up.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS - the presentation layer is served separately
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = f"{process_time:.3f}s"
    return response


# Exception handlers
@app.exception_handler(UnknownChallengeError)
async def unknown_challenge_handler(request: Request, exc: UnknownChallengeError):
    return JSONResponse(
        status_code=404,
        content={
            "status": "error",
            "error_code": "CHALLENGE_NOT_FOUND",
            "message": str(exc),
        }
    )


@app.exception_handler(ChallengeLockedError)
async def locked_challenge_handler(request: Request, exc: ChallengeLockedError):
    return JSONResponse(
        status_code=403,
        content={
            "status": "error",
            "error_code": "CHALLENGE_LOCKED",
            "message": f"{exc}. Complete the previous challenges first.",
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error_code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }
    )


# Include routers
app.include_router(challenges_router)
app.include_router(session_router)
app.include_router(progress_router)


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Python Quest",
        "version": __version__,
        "description": "Gamified Python exercises",
        "docs": "/docs",
        "endpoints": {
            "challenges": "/challenges",
            "session": "/session",
            "run": "/session/run",
            "events": "/session/events",
            "progress": "/progress",
        },
    }


# Health check
@app.get("/health")
async def health(engine: SessionOrchestrator = Depends(get_orchestrator)):
    """Health check endpoint for monitoring."""
    from datetime import datetime, timezone

    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "challenges": len(engine.catalog),
        "evaluator": engine.evaluator.name,
    }


# Startup event
@app.on_event("startup")
async def startup():
    """Build the engine up front so configuration errors show at boot."""
    configure_logging()
    engine = get_orchestrator()
    logger.info(
        "Python Quest v%s started (%d challenges, %s evaluator)",
        __version__, len(engine.catalog), engine.evaluator.name,
    )


# For direct running
if __name__ == "__main__":
    import uvicorn
    from .config import API_HOST, API_PORT

    configure_logging()
    uvicorn.run(app, host=API_HOST, port=API_PORT)
