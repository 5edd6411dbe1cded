from typing import Annotated
from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
import logging

from models import Experience, ExperiencePage
from dependencies import SessionDep
from core.config import get_settings
from core.metrics import feed_page_size
from cache import cache_response
from services.feed import fetch_experience_page, parse_id_list, resolve_product

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("", response_model=ExperiencePage)
async def list_products(
    session: SessionDep,
    limit: Annotated[int, Query(ge=1, le=settings.FEED_MAX_LIMIT)] = settings.FEED_DEFAULT_LIMIT,
    exclude: str | None = None,
    loaded_ids: Annotated[str | None, Query(alias="loadedIds")] = None,
    p: str | None = None,
) -> ExperiencePage:
    """Get the next feed page, skipping products the client has already seen"""
    exclude_ids = parse_id_list(exclude, loaded_ids)
    try:
        page = fetch_experience_page(session, exclude_ids, limit, target=p)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching products: {str(e)}")
        if session.in_transaction():
            session.rollback()
        raise HTTPException(status_code=500, detail="Failed to fetch products")

    feed_page_size.observe(len(page.experiences))
    return page


@router.get("/{identifier}", response_model=Experience)
@cache_response(settings.CACHE_EXPIRE_TIME, key_params=("identifier",))
async def get_product(identifier: str, session: SessionDep):
    """Get one product by uid or id"""
    try:
        row = resolve_product(session, identifier)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching product {identifier}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch product")

    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")
    product, producer_name = row
    return Experience.from_product(product, producer_name)
