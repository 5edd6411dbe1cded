from typing import Annotated
from uuid import uuid4
import logging
from time import time

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from sqlmodel import Session, create_engine
from starlette.exceptions import HTTPException as StarletteHTTPException
from redis import asyncio as aioredis

from core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Database dependency
def get_session():
    with Session(engine) as session:
        yield session

SessionDep = Annotated[Session, Depends(get_session)]

# Access key dependencies
api_key_header = APIKeyHeader(name=settings.API_KEY_NAME, auto_error=False)
service_key_header = APIKeyHeader(name=settings.SERVICE_KEY_NAME, auto_error=False)

async def require_client_key(api_key: str | None = Security(api_key_header)):
    """Accept the anonymous key or the service key on public routes"""
    if not settings.REQUIRE_API_KEY:
        return
    if api_key not in (settings.ANON_KEY, settings.SERVICE_ROLE_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")

async def require_service_key(service_key: str | None = Security(service_key_header)):
    """Operator routes need the privileged key"""
    if service_key != settings.SERVICE_ROLE_KEY:
        raise HTTPException(status_code=401, detail="Service key required")

# Rate limiting dependency
async def rate_limit(key_prefix: str, limit: int, window: int = 60):
    if not settings.REDIS_URL:
        return
    redis = aioredis.from_url(settings.REDIS_URL)
    key = f"rate_limit:{key_prefix}:{int(time() // window)}"
    try:
        requests = await redis.incr(key)
        if requests == 1:
            await redis.expire(key, window)
    except Exception as e:
        logger.error(f"Rate limit error: {str(e)}")
        return
    finally:
        await redis.aclose()

    if requests > limit:
        raise HTTPException(status_code=429, detail="Too many requests")

def client_rate_limit(key_prefix: str, limit: int):
    """Build a per-client-address rate limit dependency"""
    async def dependency(request: Request):
        host = request.client.host if request.client else "unknown"
        await rate_limit(f"{key_prefix}:{host}", limit)
    return dependency

# Middleware
async def log_requests(request: Request, call_next):
    start_time = time()
    response = await call_next(request)
    process_time = time() - start_time

    logger.info(
        f"Path: {request.url.path} | "
        f"Method: {request.method} | "
        f"Status: {response.status_code} | "
        f"Process Time: {process_time:.2f}s"
    )
    return response

# Error handlers
def setup_error_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid4())
        logger.error(
            f"Unhandled error {error_id}: {str(exc)}",
            exc_info=True,
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_id": error_id,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred", "error_id": error_id},
        )

def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
