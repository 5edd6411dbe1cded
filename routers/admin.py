from typing import List
from fastapi import APIRouter, HTTPException, Query
from sqlmodel import select
import logging
from datetime import datetime

from models import Interaction, InteractionSummary, BasicResponse
from dependencies import SessionDep
from cache import clear_cache
from services.interactions import summarize_interactions

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/interactions", response_model=List[Interaction])
async def list_interactions(
    session: SessionDep,
    product_id: str | None = None,
    action: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = Query(100, ge=1, le=1000),
) -> List[Interaction]:
    """List recorded interactions, newest first"""
    query = select(Interaction)
    if product_id:
        query = query.where(Interaction.product_id == product_id)
    if action:
        query = query.where(Interaction.action == action.upper())
    if from_date:
        query = query.where(Interaction.created_at >= from_date)
    if to_date:
        query = query.where(Interaction.created_at <= to_date)
    return session.exec(query.order_by(Interaction.created_at.desc()).limit(limit)).all()


@router.get("/interactions/summary", response_model=InteractionSummary)
async def interaction_summary(session: SessionDep, product_id: str | None = None):
    """Count interactions per action code"""
    actions = summarize_interactions(session, product_id)
    return InteractionSummary(
        product_id=product_id,
        total=sum(actions.values()),
        actions=actions,
    )


@router.post("/cache/clear", response_model=BasicResponse)
async def clear_product_cache():
    """Drop cached product lookups"""
    try:
        removed = clear_cache()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Cache is not configured")
    except Exception as e:
        logger.error(f"Error clearing cache: {str(e)}")
        raise HTTPException(status_code=500, detail="Error clearing cache")
    logger.info(f"Cache cleared, {removed} keys removed")
    return BasicResponse(message=f"Cache cleared, {removed} keys removed")
