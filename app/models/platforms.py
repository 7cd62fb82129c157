"""Pydantic request/response models for platforms, config and statistics."""

from datetime import datetime
from typing import Optional

from pydantic import Field
from sqlmodel import SQLModel


class PlatformRead(SQLModel):
    id: str
    name: str
    category: str
    weight: float
    enabled: bool
    icon_url: Optional[str] = None
    description: Optional[str] = None
    updated_at: datetime


class PlatformUpdate(SQLModel):
    """Admin edit of a platform; omitted fields are left untouched."""

    name: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0, le=10)
    enabled: Optional[bool] = None
    icon_url: Optional[str] = None
    description: Optional[str] = None


class ConfigRead(SQLModel):
    key: str
    value: str
    description: Optional[str] = None
    updated_at: datetime


class ConfigUpdate(SQLModel):
    value: str
    description: Optional[str] = None


class PlatformCount(SQLModel):
    platform_id: str
    count: int


class StatisticsRead(SQLModel):
    total_news: int
    total_platforms: int
    news_by_category: dict[str, int]
    top_platforms: list[PlatformCount]
