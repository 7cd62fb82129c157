"""Saved platform selection and ordering for a user's feed."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class UserPreference(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "user_preferences"

    user_id: str = Field(primary_key=True)
    # Ordered platform ids (JSON array stored as text)
    platform_ids: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
