"""Tests for paper/live mode switching."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import select

from agentdesk.exceptions import ModeSwitchError
from agentdesk.models.trade_log import TradeLog
from agentdesk.services.strategy_modes import starting_capital, switch_mode


def _broker_factory(ok=True, error=None):
    broker = MagicMock()
    if error is not None:
        broker.test_connection = AsyncMock(side_effect=error)
    else:
        broker.test_connection = AsyncMock(return_value={"ok": ok})
    return lambda session: broker


def _mode_logs(session):
    return session.exec(select(TradeLog).where(TradeLog.event == "mode_change")).all()


def test_starting_capital_order(make_strategy):
    s = make_strategy(capital_allocation=500.0, paper_capital=100.0)
    assert starting_capital(s, "live") == 500.0
    assert starting_capital(s, "paper") == 100.0
    bare = make_strategy(capital_allocation=None, paper_capital=None)
    assert starting_capital(bare, "live") == 1000.0


async def test_switch_to_live_resets_portfolio(session, make_strategy):
    s = make_strategy(capital_allocation=500.0, paper_cash=12.0, paper_pnl=-88.0, paper_positions=3)
    before = s.mode_switched_at

    s = await switch_mode(session, s, "live", _broker_factory())

    assert s.trading_mode == "live"
    assert s.paper_cash == 500.0
    assert s.paper_pnl == 0.0
    assert s.paper_positions == 0
    assert s.mode_switched_at > before
    [log] = _mode_logs(session)
    assert log.mode == "live"


async def test_back_to_paper_resets_to_paper_capital(session, make_strategy):
    s = make_strategy(trading_mode="live", paper_capital=100.0, paper_cash=3.0, paper_pnl=-97.0)
    s = await switch_mode(session, s, "paper", _broker_factory())
    assert s.paper_cash == 100.0
    assert s.paper_pnl == 0.0


async def test_same_mode_is_noop(session, make_strategy):
    s = make_strategy(paper_cash=55.0)
    s = await switch_mode(session, s, "paper", _broker_factory())
    assert s.paper_cash == 55.0
    assert _mode_logs(session) == []


async def test_invalid_mode(session, make_strategy):
    with pytest.raises(ValueError):
        await switch_mode(session, make_strategy(), "turbo", _broker_factory())


async def test_live_without_credentials(session, make_strategy):
    s = make_strategy()
    with pytest.raises(ModeSwitchError):
        await switch_mode(session, s, "live", lambda session: None)
    assert s.trading_mode == "paper"


@pytest.mark.parametrize("factory", [_broker_factory(ok=False), _broker_factory(error=RuntimeError("timeout"))])
async def test_live_unreachable_broker(session, make_strategy, factory):
    with pytest.raises(ModeSwitchError):
        await switch_mode(session, make_strategy(), "live", factory)


def _raising_factory(error):
    def factory(session):
        raise error

    return factory


@pytest.mark.parametrize(
    "error",
    [
        ValueError("Stored credential cannot be decrypted with AD_ENCRYPTION_KEY"),
        RuntimeError("AD_ENCRYPTION_KEY not set"),
    ],
)
async def test_live_with_unusable_credentials(session, make_strategy, error):
    s = make_strategy()
    with pytest.raises(ModeSwitchError, match="credentials unusable"):
        await switch_mode(session, s, "live", _raising_factory(error))
    assert s.trading_mode == "paper"
    assert _mode_logs(session) == []
