"""Tests for the drawdown auditor."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from agentdesk.engine.auditor import audit, compute_drawdown, run_audit
from agentdesk.models.event import Event
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.services.ledger import trades_since_mode_switch


def _settings(session, strategy_id) -> StrategySettings:
    row = session.exec(select(StrategySettings).where(StrategySettings.strategy_id == strategy_id)).first()
    session.refresh(row)
    return row


class TestComputeDrawdown:
    def test_flat(self):
        stats = compute_drawdown([], 100.0)
        assert stats.drawdown == 0.0
        assert stats.equity == 100.0

    def test_from_running_peak(self):
        stats = compute_drawdown([20.0, -60.0], 100.0)
        assert stats.peak == 120.0
        assert stats.equity == 60.0
        assert stats.drawdown == pytest.approx(0.5)

    def test_recovery_clears_drawdown(self):
        assert compute_drawdown([-30.0, 30.0], 100.0).drawdown == 0.0


def test_no_trades_no_action(session, make_strategy):
    strategy = make_strategy()
    assert audit(session, strategy, []) is None
    assert _settings(session, strategy.id).last_tuned_at is None


def test_below_trigger_no_action(session, make_strategy, add_trade):
    strategy = make_strategy()
    trades = [add_trade(strategy.id, pnl=-10.0)]
    assert audit(session, strategy, trades) is None


def test_generic_strategy_tightened(session, make_strategy, add_trade):
    strategy = make_strategy()
    trades = [add_trade(strategy.id, pnl=-20.0)]

    result = audit(session, strategy, trades)

    assert result.drawdown == pytest.approx(0.2)
    row = _settings(session, strategy.id)
    assert row.certainty_threshold == pytest.approx(0.96)
    assert row.liquidity_floor == pytest.approx(0.55)
    assert row.order_size_multiplier == pytest.approx(0.9)
    assert row.divergence_threshold == 20.0
    assert row.last_tuned_at is not None
    [event] = session.exec(select(Event)).all()
    assert event.event_type == "auditor"
    assert event.message == "Tuning applied for Test strategy (drawdown 20.0%)"


def test_contrarian_strategy_tightened(session, make_strategy, add_trade):
    strategy = make_strategy(kind="contrarian")
    trades = [add_trade(strategy.id, pnl=-50.0)]

    result = audit(session, strategy, trades)

    assert set(result.changes) == {"divergence_threshold", "order_size_multiplier"}
    row = _settings(session, strategy.id)
    assert row.divergence_threshold == 22.0
    assert row.certainty_threshold == 0.95


def test_repeated_audits_stay_within_bounds(session, make_strategy, add_trade):
    generic = make_strategy(name="Generic")
    contrarian = make_strategy(name="Contra", kind="contrarian")
    generic_trades = [add_trade(generic.id, pnl=-80.0)]
    contrarian_trades = [add_trade(contrarian.id, pnl=-80.0)]

    for _ in range(30):
        audit(session, generic, generic_trades)
        audit(session, contrarian, contrarian_trades)

    g = _settings(session, generic.id)
    c = _settings(session, contrarian.id)
    assert g.certainty_threshold == pytest.approx(0.99)
    assert g.liquidity_floor == pytest.approx(0.9)
    assert g.order_size_multiplier == pytest.approx(0.5)
    assert c.divergence_threshold == 50.0
    assert c.order_size_multiplier == pytest.approx(0.5)


def test_missing_settings_row_created(session, make_strategy, add_trade):
    strategy = make_strategy()
    session.delete(_settings(session, strategy.id))
    session.commit()

    audit(session, strategy, [add_trade(strategy.id, pnl=-30.0)])

    assert _settings(session, strategy.id).order_size_multiplier == pytest.approx(0.9)


def test_run_audit_ignores_previous_mode_epoch(session, make_strategy, add_trade):
    now = datetime.now(timezone.utc)
    strategy = make_strategy(mode_switched_at=now - timedelta(hours=1))
    add_trade(strategy.id, pnl=-90.0, executed_at=now - timedelta(days=2))
    add_trade(strategy.id, pnl=1.0, executed_at=now - timedelta(minutes=5))

    assert len(trades_since_mode_switch(session, strategy)) == 1
    assert run_audit(session) == []
