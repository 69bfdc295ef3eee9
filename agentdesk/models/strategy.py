"""Strategy model: a named trading configuration with its own mode and risk limits."""

from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlmodel import SQLModel, Field, Column


class Strategy(SQLModel, table=True):
    __tablename__ = "strategies"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    owner: str | None = None
    kind: str = "generic"  # see utils.constants.STRATEGY_KINDS

    trading_mode: str = "paper"  # "paper" or "live"
    capital_allocation: float | None = None

    # Running portfolio state, reset on every mode transition
    paper_capital: float | None = None  # API default is 100, see StrategyCreate
    paper_cash: float | None = None
    paper_pnl: float = 0.0
    paper_positions: int = 0

    # Safeguard limits
    max_position_size: float = 500.0
    max_orders_per_minute: int = 5
    daily_loss_limit: float = -200.0

    mirror_wallets: list[str] | None = Field(default=None, sa_column=Column(JSON))

    mode_switched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
