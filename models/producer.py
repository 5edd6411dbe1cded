from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime, timezone
from typing import List, TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from .product import Product


class Producer(SQLModel, table=True):
    __tablename__ = "producers"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    # Imported catalogues may not have an owning account yet
    user_id: str | None = Field(default=None, foreign_key="users.id", index=True)
    name: str
    description: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    products: List["Product"] = Relationship(back_populates="producer")
