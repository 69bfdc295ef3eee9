"""Pydantic schemas for the trade ingestion and ledger APIs."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from agentdesk.engine.executor import ProposedTrade


class TradeRequest(ProposedTrade):
    strategy_id: int


class TradeRead(BaseModel):
    id: int
    strategy_id: int
    market: str
    side: str
    notional: float
    pnl: float
    market_id: str | None
    market_slug: str | None
    closes_at: datetime | None
    is_resolved: bool
    status: str
    error: str | None
    trading_mode: str
    executed_at: datetime

    model_config = {"from_attributes": True}


class TradeLogRead(BaseModel):
    id: int
    strategy_id: int | None
    event: str
    mode: str
    market_id: str | None
    order_details: dict[str, Any] | None
    result: str | None
    error: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventCreate(BaseModel):
    event_type: str = Field(min_length=1, max_length=64)
    severity: str = Field(default="info", pattern="^(info|warning|error)$")
    message: str = ""
    strategy_id: int | None = None
