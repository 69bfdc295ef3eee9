"""Feed proposed trades from a signal source into the executor.

Signal sources are opaque producers. The executor is not idempotent, so
proposals are deduplicated here on ``strategy:market:side`` against the
strategy's most recent filled trades before anything is executed. Failed
attempts do not count, so a retry of the same market and side goes through.
"""

import logging
from typing import Protocol

from sqlmodel import Session, select

from agentdesk.config import settings
from agentdesk.engine.executor import ExecutionOutcome, ProposedTrade, execute
from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.models.trade import Trade
from agentdesk.services.market_resolver import MarketResolver
from agentdesk.services.polymarket_client import PolymarketClient
from agentdesk.utils.constants import FAILED

logger = logging.getLogger(__name__)

RECENT_TRADE_WINDOW = 100


class SignalSource(Protocol):
    name: str

    async def fetch(
        self,
        strategy: Strategy,
        settings: StrategySettings,
        watchlist: frozenset[str],
    ) -> list[ProposedTrade]:
        ...


def dedupe_key(strategy_id: int, market: str, side: str) -> str:
    return f"{strategy_id}:{market}:{side}"


def configured_watchlist(strategy: Strategy | None = None) -> frozenset[str]:
    """Wallets from AD_WATCH_WALLETS plus any the strategy mirrors, lower-cased."""
    wallets = {w.lower() for w in settings.watch_wallets}
    if strategy is not None and strategy.mirror_wallets:
        wallets.update(w.lower() for w in strategy.mirror_wallets)
    return frozenset(wallets)


def _recent_keys(session: Session, strategy_id: int) -> set[str]:
    rows = session.exec(
        select(Trade.market, Trade.side)
        .where(Trade.strategy_id == strategy_id, Trade.status != FAILED)
        .order_by(Trade.executed_at.desc())
        .limit(RECENT_TRADE_WINDOW)
    ).all()
    return {dedupe_key(strategy_id, market, side) for market, side in rows}


async def dispatch_signals(
    session: Session,
    strategy: Strategy,
    source: SignalSource,
    broker: PolymarketClient | None = None,
    resolver: MarketResolver | None = None,
) -> list[ExecutionOutcome]:
    """Fetch proposals from ``source`` and execute each one not seen recently."""
    strategy_settings = session.exec(
        select(StrategySettings).where(StrategySettings.strategy_id == strategy.id)
    ).first() or StrategySettings(strategy_id=strategy.id)

    proposals = await source.fetch(strategy, strategy_settings, configured_watchlist(strategy))
    seen = _recent_keys(session, strategy.id)
    outcomes = []

    for proposed in proposals:
        key = dedupe_key(strategy.id, proposed.market, proposed.side)
        if key in seen:
            logger.debug(f"[{source.name}] Skipping duplicate {key}")
            continue
        seen.add(key)
        outcomes.append(await execute(session, strategy, proposed, broker=broker, resolver=resolver))

    logger.info(
        f"[{source.name}] strategy_{strategy.id}: {len(proposals)} proposals, "
        f"{len(outcomes)} executed"
    )
    return outcomes
