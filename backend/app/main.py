"""Main FastAPI application."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.exceptions import ExperimentEngineError
from app.middleware.logging import LoggingMiddleware, get_logger
from app.api import experiments, health, visitor
from app.database import engine, Base, SessionLocal
from app.seed import seed_initial_data
from app import models  # noqa: F401  registers tables on Base.metadata

settings = get_settings()
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    Base.metadata.create_all(bind=engine)
    logging.info("Database tables verified/created on startup")

    if settings.bootstrap_api_key:
        db = SessionLocal()
        try:
            project = seed_initial_data(db, settings.bootstrap_api_key)
            if project:
                logger.info("database_seeded", project_id=str(project.id))
        except Exception as e:
            logger.error("database_seed_failed", error=str(e))
            db.rollback()
        finally:
            db.close()

    yield  # App runs here

    logging.info("Shutting down Experiment Engine")


# Create FastAPI app
app = FastAPI(
    title="Experiment Engine",
    description="A/B testing: traffic allocation, outcome aggregation and significance analysis",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)


@app.exception_handler(ExperimentEngineError)
async def engine_error_handler(request: Request, exc: ExperimentEngineError):
    """Map engine errors to JSON responses."""
    logger.warning(
        "engine_error",
        error_type=exc.error_code,
        detail=exc.message,
        path=request.url.path
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": exc.error_code.lower(), "context": exc.details}
    )


# CORS middleware - Allow frontend origins
allowed_origins = [
    "http://localhost:5173",  # Local development
    "http://localhost:3000",  # Alternative local port
    settings.frontend_url,     # Production frontend
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Trace-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"]
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(experiments.router, tags=["experiments"])
app.include_router(visitor.router, tags=["visitor"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "disabled",
        "endpoints": {
            "health": "/health",
            "experiments": "/experiments",
            "allocate": "GET /experiments/{id}/variant?session_id=",
            "results": "POST /experiments/{id}/results"
        }
    }


# uvicorn app.main:app --reload
