"""Refresh close time and resolution status of unresolved trades.

This is the only writer allowed to touch an existing Trade row, and it only
updates ``closes_at`` and ``is_resolved``. Each trade is committed on its own
so one bad market cannot abort the batch.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from agentdesk.models.trade import Trade
from agentdesk.services.market_resolver import MarketResolver

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    updated: int = 0
    failed: int = 0
    total: int = 0


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def refresh_unresolved(
    session: Session,
    resolver: MarketResolver,
    limit: int = 50,
) -> RefreshResult:
    trades = session.exec(
        select(Trade)
        .where(Trade.is_resolved == False)  # noqa: E712
        .where(Trade.market_slug != None)  # noqa: E711
        .order_by(Trade.executed_at)
        .limit(limit)
    ).all()

    result = RefreshResult(total=len(trades))
    for trade in trades:
        trade_id, slug = trade.id, trade.market_slug
        try:
            details = await resolver.fetch_market(slug)
        except Exception as e:
            logger.warning(f"[resolve_refresh] trade {trade_id} ({slug}): {e}")
            result.failed += 1
            continue
        if details is None:
            result.failed += 1
            continue

        trade.closes_at = _as_utc(details.get("closes_at")) or trade.closes_at
        trade.is_resolved = bool(details.get("is_resolved", trade.is_resolved))
        session.add(trade)
        try:
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[resolve_refresh] trade {trade_id} ({slug}) not saved: {e}")
            result.failed += 1
            continue
        result.updated += 1

    logger.info(
        f"[resolve_refresh] {result.updated} updated, {result.failed} failed of {result.total}"
    )
    return result
