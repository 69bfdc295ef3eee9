"""Tests for the resolve refresher."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from agentdesk.engine.resolve_refresh import refresh_unresolved


def _resolver(*results):
    resolver = MagicMock()
    resolver.fetch_market = AsyncMock(side_effect=list(results))
    return resolver


async def test_updates_only_resolution_fields(session, make_strategy, add_trade):
    s = make_strategy()
    trade = add_trade(s.id, pnl=3.0, market_slug="rain")
    add_trade(s.id, market_slug=None)
    closes = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)

    result = await refresh_unresolved(session, _resolver({"closes_at": closes, "is_resolved": True}))

    assert (result.updated, result.failed, result.total) == (1, 0, 1)
    session.refresh(trade)
    assert trade.is_resolved is True
    assert trade.closes_at.replace(tzinfo=timezone.utc) == closes
    assert trade.pnl == 3.0
    assert trade.notional == 10.0


async def test_naive_close_time_treated_as_utc(session, make_strategy, add_trade):
    s = make_strategy()
    first = add_trade(s.id, market_slug="a")
    second = add_trade(s.id, market_slug="b")

    result = await refresh_unresolved(
        session,
        _resolver(
            {"closes_at": datetime(2026, 11, 1, 12, 0), "is_resolved": False},
            {"closes_at": None, "is_resolved": True},
        ),
    )

    assert (result.updated, result.failed) == (2, 0)
    session.refresh(first)
    session.refresh(second)
    assert first.closes_at.replace(tzinfo=timezone.utc) == datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)
    assert second.is_resolved is True


async def test_failures_counted(session, make_strategy, add_trade):
    s = make_strategy()
    add_trade(s.id, market_slug="a")
    add_trade(s.id, market_slug="b")

    result = await refresh_unresolved(session, _resolver(RuntimeError("down"), None))

    assert (result.updated, result.failed, result.total) == (0, 2, 2)
