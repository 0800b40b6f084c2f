# wasatext/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

import wasatext.models  # noqa: F401  registers every table on Base.metadata
from wasatext.api.v1.router import api_router
from wasatext.config import get_settings
from wasatext.database import engine, Base
from wasatext.errors import ServiceError
from wasatext.services.storage_service import StorageService

# Get settings
settings = get_settings()

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# The upload directory must exist before StaticFiles is mounted
StorageService().ensure_directories()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables in the database
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
    yield


# Initialize app
app = FastAPI(
    title="WASAText API",
    description="Messaging backend with direct and group conversations, replies, forwarding and reactions",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.API_PREFIX)

# Serve uploaded photos
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
async def root():
    """Liveness check"""
    return {
        "message": "Welcome to the WASAText API",
        "status": "online",
        "version": "0.1.0"
    }


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request body", "errors": jsonable_errors(exc)}
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg")}
        for error in exc.errors()
    ]


# Error handler for global exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("wasatext.main:app", host="0.0.0.0", port=8000, reload=True)
