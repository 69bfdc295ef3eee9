"""Paper/live mode transitions for a single strategy."""

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlmodel import Session

from agentdesk.exceptions import ModeSwitchError
from agentdesk.models.strategy import Strategy
from agentdesk.services import ledger
from agentdesk.services.polymarket_client import PolymarketClient
from agentdesk.utils.constants import DEFAULT_STARTING_CAPITAL, LIVE, MODE_CHANGE, VALID_MODES

logger = logging.getLogger(__name__)


def starting_capital(strategy: Strategy, mode: str) -> float:
    """Fresh cash baseline for the new mode epoch."""
    base = ledger.capital_base(strategy, mode)
    return DEFAULT_STARTING_CAPITAL if base is None else base


async def _check_live_preconditions(
    session: Session,
    broker_factory: Callable[[Session], PolymarketClient | None],
):
    try:
        broker = broker_factory(session)
    except (ValueError, RuntimeError) as e:
        logger.warning(f"Cannot build broker client: {e}")
        raise ModeSwitchError(f"Polymarket wallet credentials unusable: {e}") from e
    if broker is None:
        raise ModeSwitchError("Polymarket wallet credentials not configured")
    try:
        status = await broker.test_connection()
    except Exception as e:
        logger.warning(f"Broker connection test failed: {e}")
        raise ModeSwitchError("Cannot reach Polymarket API. Check network and credentials.") from e
    if not status.get("ok"):
        raise ModeSwitchError("Cannot reach Polymarket API. Check network and credentials.")


async def switch_mode(
    session: Session,
    strategy: Strategy,
    mode: str,
    broker_factory: Callable[[Session], PolymarketClient | None],
) -> Strategy:
    """Move a strategy to ``mode``, resetting its portfolio for the new epoch.

    Requesting the mode the strategy is already in changes nothing.
    """
    if mode not in VALID_MODES:
        raise ValueError("mode must be 'paper' or 'live'")

    if mode == LIVE:
        await _check_live_preconditions(session, broker_factory)

    previous = strategy.trading_mode or "paper"
    if previous == mode:
        return strategy

    now = datetime.now(timezone.utc)
    baseline = starting_capital(strategy, mode)
    strategy.trading_mode = mode
    strategy.paper_cash = baseline
    strategy.paper_pnl = 0.0
    strategy.paper_positions = 0
    strategy.mode_switched_at = now
    strategy.updated_at = now
    session.add(strategy)
    session.commit()
    session.refresh(strategy)

    ledger.log_trade_event(
        session,
        MODE_CHANGE,
        mode,
        strategy_id=strategy.id,
        result=f"Switched {previous} → {mode}, portfolio reset to ${baseline:,.2f}",
    )
    logger.info(f"[strategy_{strategy.id}] Mode {previous} → {mode} (cash ${baseline:,.2f})")
    return strategy
