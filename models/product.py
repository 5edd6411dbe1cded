import math

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import JSON, Column
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from .producer import Producer

DEFAULT_CURRENCY = "€"
PLACEHOLDER_IMAGE = "/placeholder.jpg"


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    uid: str = Field(default_factory=lambda: uuid4().hex[:12], unique=True, index=True)
    title: str
    producer_id: str = Field(foreign_key="producers.id", index=True)
    # description, price, currency, imageUrl, images, checkoutUrl, details
    body: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    producer: Optional["Producer"] = Relationship(back_populates="products")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Experience(CamelModel):
    """Flat display shape of a product as shown in the feed"""
    id: str
    uid: str
    title: str
    description: str = ""
    price: float = 0
    currency: str = DEFAULT_CURRENCY
    image_url: str = PLACEHOLDER_IMAGE
    images: List[str] = []
    checkout_url: str = ""
    producer_id: str
    producer_name: str = ""

    @classmethod
    def from_product(cls, product: Product, producer_name: str | None = None) -> "Experience":
        body = product.body if isinstance(product.body, dict) else {}
        image_url = _text(body.get("imageUrl"), PLACEHOLDER_IMAGE)
        images = body.get("images")
        images = [i for i in images if isinstance(i, str) and i] if isinstance(images, list) else []
        return cls(
            id=product.id,
            uid=product.uid,
            title=product.title,
            description=_text(body.get("description"), ""),
            price=_price(body.get("price")),
            currency=_text(body.get("currency"), DEFAULT_CURRENCY),
            image_url=image_url,
            images=images or [image_url],
            checkout_url=_text(body.get("checkoutUrl"), ""),
            producer_id=product.producer_id,
            producer_name=producer_name or "",
        )


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _price(value: Any) -> float:
    # body is free-form JSON, anything that is not a finite number reads as 0
    if isinstance(value, bool):
        return 0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0
    return price if math.isfinite(price) else 0


class ExperiencePage(CamelModel):
    experiences: List[Experience]
    has_more: bool
