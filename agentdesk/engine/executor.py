"""Risk-gated execution of one proposed trade.

Order of operations per call:
safeguards (live only) → token resolution → broker order → Trade row → summary log.

Every stage writes a TradeLog row. A safeguard rejection stops before any Trade
row is written; every other path writes exactly one Trade row, marked failed
when a live order could not be placed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from agentdesk.config import settings
from agentdesk.engine import safeguards
from agentdesk.models.strategy import Strategy
from agentdesk.services import ledger
from agentdesk.services.market_resolver import MarketResolver
from agentdesk.services.polymarket_client import OrderRequest, PolymarketClient
from agentdesk.services.telegram_bot import notify
from agentdesk.utils.constants import (
    FAILED,
    FILLED,
    LIVE,
    LIVE_ERROR,
    LIVE_EXEC,
    LIVE_REQUEST,
    LIVE_RESPONSE,
    NO_TRADABLE_IDENTIFIER,
    PAPER,
    PAPER_EXEC,
    SAFETY_BLOCK,
    VALID_SIDES,
)

logger = logging.getLogger(__name__)
_strategy_locks: dict[int, asyncio.Lock] = {}
_strategy_locks_guard = asyncio.Lock()


class ProposedTrade(BaseModel):
    """Candidate order from a signal source, not yet admitted or recorded."""

    market: str = Field(min_length=1)
    side: str
    notional: float = Field(ge=0)
    pnl: float = 0.0
    market_id: str | None = None
    market_slug: str | None = None
    closes_at: datetime | None = None
    is_resolved: bool = False
    price: float | None = Field(default=None, gt=0, lt=1)

    @field_validator("side")
    @classmethod
    def _normalize_side(cls, value: str) -> str:
        side = value.strip().upper()
        if side not in VALID_SIDES:
            raise ValueError("must be YES or NO")
        return side

    @field_validator("closes_at")
    @classmethod
    def _closes_at_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass
class ExecutionOutcome:
    status: str  # "blocked", "filled", "failed"
    reason: str | None = None
    error: str | None = None
    trade_id: int | None = None
    order_id: str | None = None

    @property
    def blocked(self) -> bool:
        return self.status == "blocked"


async def _get_strategy_lock(strategy_id: int) -> asyncio.Lock:
    async with _strategy_locks_guard:
        lock = _strategy_locks.get(strategy_id)
        if lock is None:
            lock = asyncio.Lock()
            _strategy_locks[strategy_id] = lock
        return lock


async def execute(
    session: Session,
    strategy: Strategy,
    proposed: ProposedTrade,
    broker: PolymarketClient | None = None,
    resolver: MarketResolver | None = None,
    now: datetime | None = None,
) -> ExecutionOutcome:
    """Run one proposed trade through the gate and record the outcome.

    When ``serialize_executions`` is enabled, calls for the same strategy run
    one at a time so the safeguard reads see each other's writes.
    """
    if not settings.serialize_executions:
        return await _execute_once(session, strategy, proposed, broker, resolver, now)

    lock = await _get_strategy_lock(strategy.id)
    async with lock:
        return await _execute_once(session, strategy, proposed, broker, resolver, now)


async def _execute_once(
    session: Session,
    strategy: Strategy,
    proposed: ProposedTrade,
    broker: PolymarketClient | None,
    resolver: MarketResolver | None,
    now: datetime | None,
) -> ExecutionOutcome:
    mode = strategy.trading_mode or PAPER
    tag = f"[strategy_{strategy.id}]"
    error: str | None = None
    order_id: str | None = None

    if mode == LIVE or settings.safeguard_paper_trades:
        verdict = safeguards.evaluate(
            session,
            strategy.id,
            proposed.notional,
            proposed.pnl,
            safeguards.SafeguardLimits.from_strategy(strategy),
            now=now,
        )
        if not verdict.admitted:
            logger.warning(f"{tag} Blocked {proposed.side} {proposed.market}: {verdict.reason}")
            ledger.log_trade_event(
                session,
                SAFETY_BLOCK,
                mode,
                strategy_id=strategy.id,
                market_id=proposed.market_id,
                order_details=proposed.model_dump(mode="json"),
                result=verdict.reason,
            )
            return ExecutionOutcome(status="blocked", reason=verdict.reason)

    if mode == LIVE:
        error, order_id = await _place_live_order(session, strategy, proposed, broker, resolver)

    status = FAILED if (mode == LIVE and error) else FILLED
    trade = ledger.record_trade(
        session,
        strategy_id=strategy.id,
        market=proposed.market,
        side=proposed.side,
        notional=proposed.notional,
        pnl=proposed.pnl,
        trading_mode=mode,
        status=status,
        error=error,
        market_id=proposed.market_id,
        market_slug=proposed.market_slug,
        closes_at=proposed.closes_at,
        is_resolved=proposed.is_resolved,
        executed_at=now,
    )

    ledger.log_trade_event(
        session,
        LIVE_EXEC if mode == LIVE else PAPER_EXEC,
        mode,
        strategy_id=strategy.id,
        market_id=proposed.market_id,
        order_details={
            "trade_id": trade.id,
            "market": proposed.market,
            "side": proposed.side,
            "notional": proposed.notional,
            "pnl": trade.pnl,
            "order_id": order_id,
        },
        result="recorded" if status == FILLED else f"failed: {error}",
        error=error,
    )

    logger.info(
        f"{tag} {mode} {proposed.side} {proposed.market} ${proposed.notional:.2f} → {status}"
        + (f" ({error})" if error else "")
    )
    return ExecutionOutcome(status=status, error=error, trade_id=trade.id, order_id=order_id)


def _build_order(proposed: ProposedTrade, tokens) -> OrderRequest | None:
    price = proposed.price or tokens.price_for(proposed.side)
    if not price or price <= 0:
        return None
    return OrderRequest(
        token_id=tokens.token_for(proposed.side),
        price=round(price, 4),
        size=round(proposed.notional / price, 2),
        side="BUY",
        tick_size=tokens.tick_size,
        neg_risk=tokens.neg_risk,
    )


async def _place_live_order(
    session: Session,
    strategy: Strategy,
    proposed: ProposedTrade,
    broker: PolymarketClient | None,
    resolver: MarketResolver | None,
) -> tuple[str | None, str | None]:
    """Resolve the market and place the order. Returns (error, order_id)."""
    tag = f"[strategy_{strategy.id}]"
    resolver = resolver or MarketResolver()

    order = None
    try:
        tokens = await resolver.resolve(proposed.market_slug)
        if tokens is not None:
            order = _build_order(proposed, tokens)
    except Exception as e:
        logger.error(f"{tag} Token lookup failed for slug={proposed.market_slug}: {e}")

    if order is None:
        ledger.log_trade_event(
            session,
            SAFETY_BLOCK,
            LIVE,
            strategy_id=strategy.id,
            market_id=proposed.market_id,
            order_details={"market_slug": proposed.market_slug, "side": proposed.side},
            result=NO_TRADABLE_IDENTIFIER,
        )
        return NO_TRADABLE_IDENTIFIER, None

    if broker is None:
        error = "Broker credentials not configured"
        ledger.log_trade_event(
            session,
            LIVE_ERROR,
            LIVE,
            strategy_id=strategy.id,
            market_id=proposed.market_id,
            order_details=order.to_dict(),
            result="failed",
            error=error,
        )
        return error, None

    ledger.log_trade_event(
        session,
        LIVE_REQUEST,
        LIVE,
        strategy_id=strategy.id,
        market_id=proposed.market_id,
        order_details=order.to_dict(),
    )

    try:
        result = await broker.place_order(order)
    except Exception as e:
        error = str(e) or e.__class__.__name__
        logger.error(f"{tag} Live order failed: {error}")
        notify(f"[{strategy.name}] LIVE ORDER FAILED: {error}")
        ledger.log_trade_event(
            session,
            LIVE_RESPONSE,
            LIVE,
            strategy_id=strategy.id,
            market_id=proposed.market_id,
            order_details=order.to_dict(),
            result="failed",
            error=error,
        )
        return error, None

    ledger.log_trade_event(
        session,
        LIVE_RESPONSE,
        LIVE,
        strategy_id=strategy.id,
        market_id=proposed.market_id,
        order_details={**order.to_dict(), "order_id": result.order_id, "status": result.status},
        result="success",
    )
    return None, result.order_id
