from typing import Annotated, Any
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from models import InteractionCreate, SuccessResponse
from dependencies import SessionDep, client_rate_limit
from core.config import get_settings
from core.metrics import interactions_recorded_total
from services.interactions import build_interaction

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def parse_interaction(body: Any) -> InteractionCreate:
    """Validate the raw body, any shape without a product id is a 400"""
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Product ID is required")
    try:
        payload = InteractionCreate.model_validate(body)
    except ValidationError as e:
        logger.info(f"Rejected interaction body: {e.error_count()} errors")
        if not isinstance(body.get("productId", body.get("product_id")), str):
            raise HTTPException(status_code=400, detail="Product ID is required")
        raise HTTPException(status_code=400, detail="Invalid interaction")
    if not payload.product_id or not payload.product_id.strip():
        raise HTTPException(status_code=400, detail="Product ID is required")
    return payload


@router.post(
    "",
    response_model=SuccessResponse,
    dependencies=[Depends(client_rate_limit("interactions", settings.INTERACTIONS_PER_MINUTE))],
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {
                    "schema": InteractionCreate.model_json_schema(by_alias=True)
                }
            }
        }
    },
)
async def record_interaction(
    request: Request,
    session: SessionDep,
    body: Annotated[Any, Body()] = None,
) -> SuccessResponse:
    """Append one interaction event for a product"""
    payload = parse_interaction(body)

    interaction = build_interaction(payload, request.headers.get("user-agent"))
    try:
        session.add(interaction)
        session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error recording interaction: {str(e)}")
        session.rollback()
        raise HTTPException(status_code=500, detail="Failed to record interaction")

    interactions_recorded_total.labels(action=interaction.action or "NONE").inc()
    return SuccessResponse()
