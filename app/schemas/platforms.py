"""Platform catalogue: one row per configured hot-list source."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class PlatformCategory(str, Enum):
    """Grouping used by category filters in refresh and feed reads."""

    SOCIAL = "social"
    TECH = "tech"
    FINANCE = "finance"
    GENERAL = "general"
    OTHER = "other"


class Platform(SQLModel, table=True):  # type: ignore[call-arg]
    """A third-party trending list the pipeline can fetch.

    Disabling a platform removes it from refresh and feed reads but keeps
    its stored news rows.
    """

    __tablename__ = "platforms"

    id: str = Field(primary_key=True)  # internal code, e.g. "sspai"
    name: str = Field(index=True)
    category: PlatformCategory = Field(index=True)
    weight: float = Field(default=1.0, ge=0, le=10)
    enabled: bool = Field(default=True, index=True)
    icon_url: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
