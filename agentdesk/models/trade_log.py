"""TradeLog model: audit trail of every execution decision point."""

from datetime import datetime, timezone
from typing import Any

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON


class TradeLog(SQLModel, table=True):
    __tablename__ = "trade_logs"

    id: int | None = Field(default=None, primary_key=True)
    strategy_id: int | None = Field(default=None, foreign_key="strategies.id", index=True)
    event: str  # "safety_block", "live_request", "live_response", "paper_exec", ...
    mode: str
    market_id: str | None = None
    order_details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    result: str | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
