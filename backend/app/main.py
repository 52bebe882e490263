import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

# Core imports
from app.core.config import settings
from app.core.logging import configure_logging, LoggingMiddleware, get_logger
from app.core.rate_limiter import rate_limit_middleware, setup_redis_rate_limiter
from app.core.security import setup_redis_token_denylist
from app.core.monitoring import (
    MetricsMiddleware, get_metrics, update_health_status, DatabaseMetricsCollector
)
from app.core.dependencies import get_current_user

# Database and models
from app.database.connection import get_db, create_tables, check_database_health, get_db_stats
from app.models import User

# Import routers
from app.routers import assistant, auth, folders, projects, prompts, tags, users

# Configure logging
configure_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Startup
    logger.info("Starting Prompt Library API", version=settings.app_version)

    create_tables()

    if settings.rate_limit_enabled and settings.redis_url:
        setup_redis_rate_limiter(settings.redis_url)

    if settings.token_denylist_backend == "redis" and settings.redis_url:
        setup_redis_token_denylist(settings.redis_url)

    update_health_status("database", check_database_health())
    update_health_status("openai", bool(settings.openai_api_key))
    update_health_status("mail", bool(settings.resend_api_key))

    logger.info("Application startup complete")
    yield

    # Shutdown
    logger.info("Shutting down Prompt Library API")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    **settings.get_cors_config()
)

if settings.metrics_enabled:
    app.add_middleware(MetricsMiddleware)

app.add_middleware(LoggingMiddleware)

if settings.rate_limit_enabled:
    app.middleware("http")(rate_limit_middleware)


# Health and monitoring endpoints
@app.get("/health")
async def health_check():
    """Health of the database and configuration state of the external services"""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.app_version,
        "environment": settings.environment,
        "services": {}
    }

    db_healthy = check_database_health()
    health_status["services"]["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "stats": get_db_stats()
    }
    update_health_status("database", db_healthy)

    # Configuration only; neither service is called here
    openai_configured = bool(settings.openai_api_key)
    health_status["services"]["openai"] = {
        "status": "configured" if openai_configured else "not_configured"
    }
    update_health_status("openai", openai_configured)

    mail_configured = bool(settings.resend_api_key)
    health_status["services"]["mail"] = {
        "status": "configured" if mail_configured else "not_configured"
    }
    update_health_status("mail", mail_configured)

    if settings.rate_limit_enabled:
        health_status["services"]["redis"] = {
            "status": "configured" if settings.redis_url else "in_memory"
        }

    if db_healthy:
        status_code = 200
    else:
        health_status["status"] = "unhealthy"
        status_code = 503

    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return await get_metrics()


@app.get("/stats")
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get application statistics (admin endpoint)"""
    try:
        await DatabaseMetricsCollector.collect_from_db(db)

        return {
            "database": get_db_stats(),
            "application": {
                "version": settings.app_version,
                "environment": settings.environment,
                "features": {
                    "rate_limiting": settings.rate_limit_enabled,
                    "metrics": settings.metrics_enabled,
                    "redis": bool(settings.redis_url),
                    "prompt_analysis": bool(settings.openai_api_key),
                    "feedback_email": bool(settings.resend_api_key),
                }
            }
        }
    except Exception as e:
        logger.error("Error collecting stats", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to collect stats")


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Prompt Library API",
        "version": settings.app_version,
        "environment": settings.environment,
        "docs_url": "/docs" if settings.is_development else None,
        "health_url": "/health",
        "metrics_url": "/metrics" if settings.metrics_enabled else None
    }


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(users.files_router)
app.include_router(projects.router)
app.include_router(folders.router)
app.include_router(prompts.router)
app.include_router(tags.router)

app.include_router(
    assistant.router
    # No auth dependency; the assistant endpoints take no user data
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
