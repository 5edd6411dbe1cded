from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sqlalchemy import text
from sqlmodel import SQLModel
from redis import asyncio as aioredis
import uvicorn

from core.config import get_settings
from core.logging_config import setup_logging
from dependencies import (
    SessionDep,
    engine,
    log_requests,
    require_client_key,
    require_service_key,
    setup_error_handlers,
)
from routers import products_router, interactions_router, admin_router

# Initialize settings and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

redis: aioredis.Redis | None = None

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

def custom_generate_unique_id(route: APIRoute):
    return f"{route.tags[0] if route.tags else ''}-{route.name}"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Setup and cleanup tasks for the application lifecycle"""
    global redis
    create_db_and_tables()
    if settings.REDIS_URL:
        try:
            redis = aioredis.from_url(
                settings.REDIS_URL, encoding="utf8", decode_responses=True
            )
            await redis.ping()
            logger.info("Successfully connected to Redis")
        except Exception as e:
            # Caching and rate limiting degrade to no-ops
            logger.error(f"Failed to connect to Redis: {str(e)}")
    else:
        logger.info("Redis not configured, caching and rate limiting disabled")
    try:
        yield
    finally:
        if redis:
            await redis.close()
            redis = None

def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        openapi_url=settings.OPENAPI_URL,
        openapi_tags=settings.OPENAPI_TAGS,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    # Add middleware
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handlers
    setup_error_handlers(app)

    Instrumentator().instrument(app)\
        .add(metrics.request_size())\
        .add(metrics.response_size())\
        .add(metrics.latency(buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0]))\
        .add(metrics.requests(should_include_handler=True))\
        .expose(app, include_in_schema=False, should_gzip=True)

    # Include routers
    app.include_router(
        products_router,
        prefix="/api/products",
        tags=["products"],
        dependencies=[Depends(require_client_key)],
    )
    app.include_router(
        interactions_router,
        prefix="/api/interactions",
        tags=["interactions"],
        dependencies=[Depends(require_client_key)],
    )
    app.include_router(
        admin_router,
        prefix="/admin",
        tags=["admin"],
        dependencies=[Depends(require_service_key)],
    )

    @app.get("/health")
    async def health_check(session: SessionDep):
        """Health check endpoint for monitoring"""
        try:
            session.execute(text("SELECT 1"))
            if redis:
                await redis.ping()
            return {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc),
                "version": settings.APP_VERSION,
                "cache": "enabled" if redis else "disabled",
            }
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            raise HTTPException(
                status_code=503,
                detail="Service unavailable"
            )

    return app

# Create the FastAPI application
app = create_application()

def main():
    """Create tables and load the development catalogue"""
    create_db_and_tables()
    try:
        from seed_data import create_test_data
        create_test_data()
    except Exception as e:
        logger.error(f"Failed to create test data: {e}")

def serve():
    """Run the API with uvicorn"""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)

if __name__ == "__main__":
    main()
    serve()
