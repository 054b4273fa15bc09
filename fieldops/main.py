from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

# Database migrations are managed exclusively via Alembic
from fieldops.routers import resources, allocations, jobs
from fieldops.core.config import settings
from fieldops.core.exceptions import (
    DomainError, NotFoundError, InvalidIntervalError, InvariantViolationError,
    ResourceUnavailableError, ResourceInUseError, StoreError, PartialFailureError
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidIntervalError: 422,
    InvariantViolationError: 422,
    ResourceUnavailableError: status.HTTP_409_CONFLICT,
    ResourceInUseError: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
    PartialFailureError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    # NOTE: Database migrations are managed by Alembic exclusively.
    # Run: alembic upgrade head
    logger.info("Starting application...")
    logger.info(f"Utilization assumes a {settings.WORKDAY_HOURS:g}-hour working day")
    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")

app = FastAPI(
    title="Field Operations Scheduler",
    description="Resource allocation, conflict detection and utilization for field-service jobs",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,  # Frontend URL from settings
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Render scheduling errors with their type and details."""
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})

app.include_router(resources.router)
app.include_router(allocations.router)
app.include_router(jobs.router)

@app.get("/")
def read_root():
    return {
        "message": "Welcome to the Field Operations Scheduler API",
        "version": "1.0.0",
        "modules": {
            "resources": "/resources/* (resources, availability, utilization)",
            "allocations": "/allocations/* (availability-checked bookings)",
            "jobs": "/jobs/* (job allocations, conflicts and schedule)"
        },
        "docs": "/docs",
        "redoc": "/redoc"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}
