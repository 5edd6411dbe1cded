from sqlmodel import Field, SQLModel
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4


class UserType(str, Enum):
    STANDARD = "standard"
    SELLER = "seller"
    PRODUCER = "producer"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    email: str | None = Field(default=None, index=True)
    user_type: UserType = Field(default=UserType.STANDARD)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
