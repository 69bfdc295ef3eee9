"""Event model: lightweight operational notifications for the dashboard feed."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: int | None = Field(default=None, primary_key=True)
    strategy_id: int | None = Field(default=None, foreign_key="strategies.id", index=True)
    event_type: str
    severity: str = "info"  # "info", "warning", "error"
    message: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
