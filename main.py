"""
PDF Flashcard Generator - Main application entry point
"""
import time
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Any

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.staticfiles import StaticFiles

from config import settings
from api.dependencies import get_llm_service, get_result_cache, get_flashcard_service
from api.flashcard_controller import router as flashcard_router

from utils.error_handlers import ErrorHandlingMiddleware, create_error_response, get_status_code_for_error_code
from utils.logging import setup_logging, log_api_request
from utils.exceptions import FlashcardException, ErrorCode
from utils.health_check import HealthChecker, HealthStatus, system_health_to_dict, is_service_ready

logger = setup_logging()

# Global application state
app_state: Dict[str, Any] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events
    """
    start_time = time.time()
    app_state["start_time"] = start_time

    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")

    try:
        llm_service = get_llm_service()
        app_state["llm_service"] = llm_service
        logger.info("LLM service initialized")

        result_cache = get_result_cache()
        app_state["result_cache"] = result_cache

        flashcard_service = get_flashcard_service()
        app_state["flashcard_service"] = flashcard_service
        logger.info("Flashcard service initialized")

        health_checker = HealthChecker(
            llm_service=llm_service,
            upload_directory=settings.upload_directory,
            result_cache=result_cache
        )
        app_state["health_checker"] = health_checker

        system_health = await health_checker.check_system_health()
        logger.info(f"Initial system health check: {system_health.status.value}")

        startup_time = time.time() - start_time
        logger.info(f"{settings.app_name} startup completed successfully in {startup_time:.2f} seconds")

        yield

    except Exception as e:
        logger.error(f"Failed to start {settings.app_name}: {e}")
        raise

    logger.info(f"Shutting down {settings.app_name}...")

    flashcard_service = app_state.get("flashcard_service")
    if flashcard_service:
        removed = flashcard_service.cleanup_stale_uploads(max_age_seconds=0)
        logger.info(f"Removed {removed} leftover uploads")

    app_state.clear()
    logger.info(f"{settings.app_name} shutdown completed")


app = FastAPI(
    title=settings.app_name,
    description="Upload a PDF or PowerPoint document and get a short summary plus study flashcards",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


def configure_middleware():
    """Configure all application middleware"""

    if settings.allowed_hosts:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts.split(",")
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins.split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "unknown")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Request failed: {request.method} {request.url.path} - {str(e)}")
            log_api_request(
                method=request.method,
                path=str(request.url.path),
                status_code=500,
                duration_ms=duration_ms,
                user_agent=user_agent,
                client_ip=client_ip
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        log_api_request(
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            duration_ms=duration_ms,
            user_agent=user_agent,
            client_ip=client_ip
        )
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response

    app.add_middleware(ErrorHandlingMiddleware)


configure_middleware()


@app.exception_handler(FlashcardException)
async def flashcard_exception_handler(request: Request, exc: FlashcardException):
    """
    Handle application exceptions with structured error responses
    """
    logger.warning(f"Flashcard exception in {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=get_status_code_for_error_code(exc.error_code),
        content=exc.to_dict()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (e.g. numQuestions out of range)
    """
    logger.warning(f"Validation error in {request.method} {request.url}: {exc}")

    field_errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        field_errors.append(f"{field_path}: {error['msg']}")

    return create_error_response(
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        status_code=422,
        details="; ".join(field_errors)
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions with consistent formatting
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP_ERROR",
            "details": str(exc.detail),
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        }
    )


app.include_router(flashcard_router)

# Saved uploads are removed once their request finishes
Path(settings.upload_directory).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_directory), name="uploads")


@app.get("/health")
async def health_check():
    """
    Basic health check endpoint for load balancers and monitoring
    """
    return {
        "status": "healthy",
        "message": f"{settings.app_name} is running",
        "version": settings.app_version,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/health/detailed")
async def detailed_health_check():
    """
    Detailed health check endpoint with component status
    """
    health_checker = app_state.get("health_checker") or HealthChecker(
        llm_service=get_llm_service(),
        upload_directory=settings.upload_directory,
        result_cache=get_result_cache()
    )

    try:
        system_health = await health_checker.check_system_health(include_details=True)
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "message": f"Health check failed: {str(e)}",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        )

    status_code = 503 if system_health.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=system_health_to_dict(system_health))


@app.get("/health/ready")
async def readiness_check():
    """
    Readiness check endpoint for container orchestration
    """
    llm_service = app_state.get("llm_service")

    if not is_service_ready(llm_service, settings.upload_directory):
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "message": "LLM service not configured or upload directory not writable",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        )

    return {
        "status": "ready",
        "message": "Service is ready to accept requests",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/health/live")
async def liveness_check():
    """
    Liveness check endpoint for container orchestration
    """
    return {
        "status": "alive",
        "message": "Service is alive",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "uptime_seconds": int(time.time() - app_state.get("start_time", time.time()))
    }


@app.get("/")
async def root():
    """
    Root endpoint with API information
    """
    return {
        "message": f"Welcome to the {settings.app_name} API",
        "version": settings.app_version,
        "environment": settings.environment,
        "documentation": "/docs",
        "endpoints": {
            "process_file": "POST /process-file",
            "health_check": "GET /health",
            "detailed_health": "GET /health/detailed",
            "readiness": "GET /health/ready",
            "liveness": "GET /health/live"
        },
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/info")
async def application_info():
    """
    Application information endpoint
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "configuration": {
            "max_file_size_mb": settings.max_file_size_mb,
            "chunk_size": settings.chunk_size,
            "llm_model": settings.llm_model,
            "processing_timeout_seconds": settings.processing_timeout_seconds,
            "cache_ttl_seconds": settings.cache_ttl_seconds,
            "log_level": settings.log_level
        },
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


def create_app() -> FastAPI:
    """
    Application factory function
    """
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers if not settings.debug else 1,
        reload=settings.debug,
        access_log=True,
        server_header=False
    )
