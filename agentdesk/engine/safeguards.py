"""Pre-trade safeguards.

Three checks run in order and the first failure wins:

1. position size: the proposed notional may not exceed ``max_position_size``
2. rate limit: fewer than ``max_orders_per_minute`` trades in the last 60s
3. daily loss: today's realized PnL plus the proposed PnL must stay above
   ``daily_loss_limit`` (rejects once the sum reaches the limit)

Every call reads the trade ledger directly. Nothing is cached and nothing is
written, so two concurrent evaluations for the same strategy can both pass
before either trade is recorded.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlmodel import Session, select, func

from agentdesk.models.strategy import Strategy
from agentdesk.models.trade import Trade
from agentdesk.utils.constants import RATE_LIMIT_WINDOW_SECONDS


@dataclass(frozen=True)
class SafeguardLimits:
    max_position_size: float
    max_orders_per_minute: int
    daily_loss_limit: float

    @classmethod
    def from_strategy(cls, strategy: Strategy) -> "SafeguardLimits":
        return cls(
            max_position_size=strategy.max_position_size,
            max_orders_per_minute=strategy.max_orders_per_minute,
            daily_loss_limit=strategy.daily_loss_limit,
        )


@dataclass(frozen=True)
class SafeguardResult:
    admitted: bool
    reason: str | None = None


def _utc_midnight(now: datetime) -> datetime:
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def recent_order_count(session: Session, strategy_id: int, now: datetime) -> int:
    since = now - timedelta(seconds=RATE_LIMIT_WINDOW_SECONDS)
    return session.exec(
        select(func.count())
        .select_from(Trade)
        .where(Trade.strategy_id == strategy_id, Trade.executed_at >= since)
    ).one()


def daily_pnl(session: Session, strategy_id: int, now: datetime) -> float:
    total = session.exec(
        select(func.sum(Trade.pnl))
        .where(Trade.strategy_id == strategy_id, Trade.executed_at >= _utc_midnight(now))
    ).one()
    return float(total or 0.0)


def evaluate(
    session: Session,
    strategy_id: int,
    proposed_notional: float,
    proposed_pnl: float,
    limits: SafeguardLimits,
    now: datetime | None = None,
) -> SafeguardResult:
    """Decide whether a proposed trade may execute."""
    now = now or datetime.now(timezone.utc)

    if proposed_notional > limits.max_position_size:
        return SafeguardResult(
            admitted=False,
            reason=(
                f"Position size ${proposed_notional:,.2f} exceeds max "
                f"${limits.max_position_size:,.2f}"
            ),
        )

    recent = recent_order_count(session, strategy_id, now)
    if recent >= limits.max_orders_per_minute:
        return SafeguardResult(
            admitted=False,
            reason=f"Rate limit: {recent} orders in last minute (max {limits.max_orders_per_minute})",
        )

    projected = daily_pnl(session, strategy_id, now) + proposed_pnl
    if projected <= limits.daily_loss_limit:
        return SafeguardResult(
            admitted=False,
            reason=f"Daily loss limit hit: PnL ${projected:.2f} <= limit ${limits.daily_loss_limit:.2f}",
        )

    return SafeguardResult(admitted=True)
