from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from .product import CamelModel


class InteractionAction(str, Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"
    VIEW_DETAILS = "VIEW_DETAILS"
    SHARE = "SHARE"
    CLICK_BUY = "CLICK_BUY"


class Interaction(SQLModel, table=True):
    __tablename__ = "link_stduser_product"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str | None = Field(default=None, index=True)
    product_id: str = Field(foreign_key="products.id", index=True)
    action: str | None = Field(default=None, index=True)
    liked: bool | None = Field(default=None)
    disliked: bool | None = Field(default=None)
    clicked_buy: bool = Field(default=False)
    clicked_details: bool = Field(default=False)
    clicked_share: bool = Field(default=False)
    # Only filled for anonymous visitors
    anonymous_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InteractionCreate(CamelModel):
    # Optional so a missing id is answered with 400 by the handler, not 422
    product_id: str | None = None
    user_id: str | None = None
    liked: bool | None = None
    disliked: bool | None = None
    clicked_buy: bool | None = None
    clicked_details: bool | None = None
    clicked_share: bool | None = None
    action: str | None = None


class InteractionSummary(CamelModel):
    product_id: str | None = None
    total: int
    actions: Dict[str, int]
