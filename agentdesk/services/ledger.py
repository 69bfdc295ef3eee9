"""Trade ledger: append-only writes for trades, audit rows and events, plus read helpers."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session, select

from agentdesk.models.event import Event
from agentdesk.models.strategy import Strategy
from agentdesk.models.trade import Trade
from agentdesk.models.trade_log import TradeLog
from agentdesk.utils.constants import FAILED, LIVE, MAX_LOG_LIMIT, PAPER

logger = logging.getLogger(__name__)


def record_trade(
    session: Session,
    strategy_id: int,
    market: str,
    side: str,
    notional: float,
    pnl: float,
    trading_mode: str,
    status: str,
    error: str | None = None,
    market_id: str | None = None,
    market_slug: str | None = None,
    closes_at: datetime | None = None,
    is_resolved: bool = False,
    executed_at: datetime | None = None,
) -> Trade:
    """Insert one Trade row. Failed rows always carry pnl=0 and an error."""
    if status == FAILED:
        pnl = 0.0
        error = error or "unknown error"

    trade = Trade(
        strategy_id=strategy_id,
        market=market,
        side=side,
        notional=notional,
        pnl=pnl,
        market_id=market_id,
        market_slug=market_slug,
        closes_at=closes_at,
        is_resolved=is_resolved,
        status=status,
        error=error,
        trading_mode=trading_mode,
        executed_at=executed_at or datetime.now(timezone.utc),
    )
    session.add(trade)
    session.commit()
    session.refresh(trade)
    return trade


def log_trade_event(
    session: Session,
    event: str,
    mode: str,
    strategy_id: int | None = None,
    market_id: str | None = None,
    order_details: dict[str, Any] | None = None,
    result: str | None = None,
    error: str | None = None,
) -> TradeLog:
    """Append one TradeLog row."""
    row = TradeLog(
        strategy_id=strategy_id,
        event=event,
        mode=mode,
        market_id=market_id,
        order_details=order_details,
        result=result,
        error=error,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def record_event(
    session: Session,
    event_type: str,
    message: str,
    severity: str = "info",
    strategy_id: int | None = None,
) -> Event:
    row = Event(
        strategy_id=strategy_id,
        event_type=event_type,
        severity=severity,
        message=message,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def recent_trade_logs(
    session: Session,
    strategy_id: int | None = None,
    limit: int = 100,
) -> list[TradeLog]:
    """Newest-first audit rows; limit is clamped to [1, 500]."""
    limit = max(1, min(limit, MAX_LOG_LIMIT))
    stmt = select(TradeLog).order_by(TradeLog.created_at.desc(), TradeLog.id.desc())
    if strategy_id is not None:
        stmt = stmt.where(TradeLog.strategy_id == strategy_id)
    return list(session.exec(stmt.limit(limit)).all())


def trades_since_mode_switch(session: Session, strategy: Strategy) -> list[Trade]:
    """Trades in the strategy's current mode epoch, oldest first."""
    stmt = select(Trade).where(Trade.strategy_id == strategy.id)
    if strategy.mode_switched_at is not None:
        stmt = stmt.where(Trade.executed_at >= strategy.mode_switched_at)
    stmt = stmt.order_by(Trade.executed_at, Trade.id)
    return list(session.exec(stmt).all())


def capital_base(strategy: Strategy, mode: str | None = None) -> float | None:
    """Capital the given mode (default: the current one) starts from, or None if unset."""
    mode = mode or strategy.trading_mode or PAPER
    if mode == LIVE:
        candidates = (strategy.capital_allocation, strategy.paper_capital)
    else:
        candidates = (strategy.paper_capital, strategy.capital_allocation)
    for value in candidates:
        if value is not None:
            return value
    return None


def strategy_stats(session: Session, strategy: Strategy) -> dict:
    """Dashboard numbers for one strategy, restricted to the current mode epoch."""
    trades = trades_since_mode_switch(session, strategy)
    base = capital_base(strategy) or 0.0

    pnl = sum(t.pnl or 0.0 for t in trades)
    notional = sum(t.notional or 0.0 for t in trades)
    failed = sum(1 for t in trades if t.status == FAILED)

    return {
        "strategy_id": strategy.id,
        "name": strategy.name,
        "trading_mode": strategy.trading_mode or "paper",
        "base": round(base, 2),
        "pnl": round(pnl, 2),
        "notional": round(notional, 2),
        "equity": round(base + pnl, 2),
        "trade_count": len(trades),
        "failed_count": failed,
        "mode_switched_at": strategy.mode_switched_at,
    }

