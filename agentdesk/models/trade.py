"""Trade model: append-only record of every executed or attempted order."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Trade(SQLModel, table=True):
    __tablename__ = "trades"

    id: int | None = Field(default=None, primary_key=True)
    strategy_id: int = Field(foreign_key="strategies.id", index=True)
    market: str
    side: str  # "YES" or "NO"
    notional: float
    pnl: float = 0.0
    market_id: str | None = None
    market_slug: str | None = None
    closes_at: datetime | None = None
    is_resolved: bool = False
    status: str = "filled"  # "filled" or "failed"
    error: str | None = None
    trading_mode: str = "paper"
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
