"""StrategySettings model: tunable signal thresholds, one row per strategy."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class StrategySettings(SQLModel, table=True):
    __tablename__ = "strategy_settings"

    id: int | None = Field(default=None, primary_key=True)
    strategy_id: int = Field(foreign_key="strategies.id", index=True, unique=True)

    max_trade_notional: float = 50.0
    max_trades_per_hour: int = 5
    max_daily_notional: float = 200.0
    max_daily_loss: float = -100.0

    divergence_threshold: float = 20.0
    certainty_threshold: float = 0.95
    liquidity_floor: float = 0.5  # millions of USD
    order_size_multiplier: float = 1.0
    max_resolution_days: int = 0  # 0 = no limit

    last_tuned_at: datetime | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
