"""Pydantic schemas for Strategy and StrategySettings APIs."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from agentdesk.utils.constants import STRATEGY_KINDS, VALID_MODES

_WALLET_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_LABEL_STRIP_RE = re.compile(r"[^a-zA-Z0-9_ -]")


class StrategyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    owner: str | None = Field(default=None, max_length=120)
    kind: str = "generic"
    capital_allocation: float | None = Field(default=None, ge=0)
    paper_capital: float = Field(default=100.0, ge=0)
    max_position_size: float = Field(default=500.0, gt=0)
    max_orders_per_minute: int = Field(default=5, ge=1)
    daily_loss_limit: float = Field(default=-200.0, le=0)

    @field_validator("name")
    @classmethod
    def _trim_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("kind")
    @classmethod
    def _validate_kind(cls, value: str) -> str:
        if value not in STRATEGY_KINDS:
            raise ValueError(f"must be one of: {', '.join(STRATEGY_KINDS)}")
        return value


class MirrorCreate(BaseModel):
    wallet_address: str
    wallet_label: str | None = None

    @field_validator("wallet_address")
    @classmethod
    def _validate_wallet(cls, value: str) -> str:
        if not _WALLET_RE.fullmatch(value.strip()):
            raise ValueError("Invalid wallet address")
        return value.strip().lower()

    def display_label(self) -> str:
        label = _LABEL_STRIP_RE.sub("", self.wallet_label or "")
        return label or self.wallet_address[:8]


class ModeRequest(BaseModel):
    mode: str

    @field_validator("mode")
    @classmethod
    def _validate_mode(cls, value: str) -> str:
        if value not in VALID_MODES:
            raise ValueError("mode must be 'paper' or 'live'")
        return value


class StrategyRead(BaseModel):
    id: int
    name: str
    owner: str | None
    kind: str
    trading_mode: str
    capital_allocation: float | None
    paper_capital: float | None
    paper_cash: float | None
    paper_pnl: float
    paper_positions: int
    max_position_size: float
    max_orders_per_minute: int
    daily_loss_limit: float
    mirror_wallets: list[str] | None
    mode_switched_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StrategySettingsUpdate(BaseModel):
    max_trade_notional: float | None = Field(default=None, gt=0)
    max_trades_per_hour: int | None = Field(default=None, ge=0)
    max_daily_notional: float | None = Field(default=None, gt=0)
    max_daily_loss: float | None = Field(default=None, le=0)
    divergence_threshold: float | None = Field(default=None, ge=0, le=100)
    certainty_threshold: float | None = Field(default=None, ge=0, le=1)
    liquidity_floor: float | None = Field(default=None, ge=0)
    order_size_multiplier: float | None = Field(default=None, gt=0)
    max_resolution_days: int | None = Field(default=None, ge=0)


class StrategySettingsRead(BaseModel):
    strategy_id: int
    max_trade_notional: float
    max_trades_per_hour: int
    max_daily_notional: float
    max_daily_loss: float
    divergence_threshold: float
    certainty_threshold: float
    liquidity_floor: float
    order_size_multiplier: float
    max_resolution_days: int
    last_tuned_at: datetime | None
    updated_at: datetime

    model_config = {"from_attributes": True}
