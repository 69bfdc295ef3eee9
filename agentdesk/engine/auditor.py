"""Drawdown auditor.

Replays each strategy's trades as an equity curve and, once drawdown reaches
15%, tightens its signal thresholds and shrinks its order size. Adjustments
only ever tighten and are clamped to fixed bounds.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np
from sqlmodel import Session, select

from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.models.trade import Trade
from agentdesk.services import ledger
from agentdesk.utils.constants import (
    AUDIT_DEFAULT_BASE,
    AUDIT_DRAWDOWN_TRIGGER,
    CERTAINTY_CAP,
    CERTAINTY_STEP,
    DIVERGENCE_CAP,
    DIVERGENCE_STEP,
    LIQUIDITY_CAP,
    LIQUIDITY_STEP,
    SIZE_DAMPING,
    SIZE_FLOOR,
)

logger = logging.getLogger(__name__)


@dataclass
class DrawdownStats:
    equity: float
    peak: float
    drawdown: float


@dataclass
class AuditResult:
    strategy_id: int
    strategy_name: str
    drawdown: float
    changes: dict[str, float] = field(default_factory=dict)


def compute_drawdown(pnls, base: float = AUDIT_DEFAULT_BASE) -> DrawdownStats:
    """Final drawdown of the equity curve ``base + cumsum(pnls)`` from its running peak."""
    pnl_arr = np.nan_to_num(np.asarray(list(pnls), dtype=float))
    curve = base + np.concatenate(([0.0], np.cumsum(pnl_arr)))
    peak = float(np.max(curve))
    equity = float(curve[-1])
    dd = (peak - equity) / peak if peak > 0 else 0.0
    return DrawdownStats(equity=equity, peak=peak, drawdown=dd)


def _tighten(strategy: Strategy, current: StrategySettings) -> dict[str, float]:
    changes = {
        "order_size_multiplier": max(SIZE_FLOOR, current.order_size_multiplier * SIZE_DAMPING),
    }
    if strategy.kind == "contrarian":
        changes["divergence_threshold"] = min(
            DIVERGENCE_CAP, current.divergence_threshold + DIVERGENCE_STEP
        )
    else:
        changes["certainty_threshold"] = min(
            CERTAINTY_CAP, round(current.certainty_threshold + CERTAINTY_STEP, 4)
        )
        changes["liquidity_floor"] = min(
            LIQUIDITY_CAP, round(current.liquidity_floor + LIQUIDITY_STEP, 4)
        )
    return changes


def audit(
    session: Session,
    strategy: Strategy,
    trades: list[Trade],
    now: datetime | None = None,
) -> AuditResult | None:
    """Tune one strategy's settings if its drawdown is at or past the trigger.

    ``trades`` must be in chronological order. Returns None when no action is taken.
    """
    if not trades:
        return None

    base = strategy.paper_capital if strategy.paper_capital is not None else AUDIT_DEFAULT_BASE
    stats = compute_drawdown((t.pnl for t in trades), base)
    if stats.drawdown < AUDIT_DRAWDOWN_TRIGGER:
        return None

    current = session.exec(
        select(StrategySettings).where(StrategySettings.strategy_id == strategy.id)
    ).first()
    if current is None:
        current = StrategySettings(strategy_id=strategy.id)

    changes = _tighten(strategy, current)
    for key, value in changes.items():
        setattr(current, key, value)
    now = now or datetime.now(timezone.utc)
    current.last_tuned_at = now
    current.updated_at = now
    session.add(current)
    session.commit()

    message = f"Tuning applied for {strategy.name} (drawdown {stats.drawdown * 100:.1f}%)"
    ledger.record_event(session, "auditor", message, strategy_id=strategy.id)
    logger.info(f"[auditor] {message}: {changes}")

    return AuditResult(
        strategy_id=strategy.id,
        strategy_name=strategy.name,
        drawdown=stats.drawdown,
        changes=changes,
    )


def run_audit(session: Session) -> list[AuditResult]:
    """Audit every strategy over the trades of its current mode epoch."""
    results = []
    for strategy in session.exec(select(Strategy).order_by(Strategy.id)).all():
        trades = ledger.trades_since_mode_switch(session, strategy)
        result = audit(session, strategy, trades)
        if result is not None:
            results.append(result)
    logger.info(f"[auditor] Pass complete, tuned {len(results)} strategies")
    return results
