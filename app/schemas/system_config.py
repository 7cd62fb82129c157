"""Administrator-owned key/value settings read by the pipeline."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

NEWS_FETCH_LIMIT_KEY = "news_fetch_limit"


class SystemConfig(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "system_config"

    key: str = Field(primary_key=True)
    value: str
    description: Optional[str] = Field(default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
