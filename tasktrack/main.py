"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from tasktrack.config import settings
from tasktrack.database import database
from tasktrack.exceptions import PersistenceError
from tasktrack.routers import auth, profiles, tasks, time_entries, timers, timesheet

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    configure_logging(settings.log_level)
    await database.connect()
    yield
    await database.disconnect()


app = FastAPI(
    title="Tasktrack API",
    description="Team tasks, time tracking and timesheets",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(tasks.router)
app.include_router(time_entries.router)
app.include_router(timers.router)
app.include_router(timesheet.router)


@app.exception_handler(PyMongoError)
@app.exception_handler(PersistenceError)
async def database_error_handler(request: Request, exc: Exception):
    """Surface database failures to the client as they are; nothing is retried."""
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Tasktrack API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}

