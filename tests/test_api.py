"""End-to-end tests over the HTTP surface."""

from datetime import datetime, timezone

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from agentdesk.api.deps import get_broker_factory
from agentdesk.config import settings
from agentdesk.main import app
from agentdesk.models.credential import Credential
from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.models.trade import Trade
from agentdesk.models.trade_log import TradeLog
from agentdesk.services import ledger
from agentdesk.services.encryption import reset_cipher

WALLET = "0x" + "ab" * 20


@pytest.fixture
def no_broker():
    app.dependency_overrides[get_broker_factory] = lambda: (lambda session: None)
    yield
    app.dependency_overrides.pop(get_broker_factory, None)


class TestTrade:
    def test_oversized_live_trade_rejected(self, client, session, make_strategy, no_broker):
        s = make_strategy(trading_mode="live", max_position_size=500.0)

        resp = client.post("/trade", json={"strategy_id": s.id, "market": "Mkt", "side": "YES", "notional": 600})

        assert resp.status_code == 400
        assert "exceeds" in resp.json()["error"]
        assert session.exec(select(Trade)).all() == []
        [log] = session.exec(select(TradeLog)).all()
        assert log.event == "safety_block"

    def test_paper_trade_accepted(self, client, session, make_strategy):
        s = make_strategy()

        resp = client.post("/trade", json={"strategy_id": s.id, "market": "Mkt", "side": "NO", "notional": 25, "pnl": 0})

        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["status"] == "filled"
        [trade] = session.exec(select(Trade)).all()
        assert trade.trading_mode == "paper"
        assert trade.status == "filled"
        assert trade.side == "NO"

    def test_live_failure_still_200(self, client, session, make_strategy, no_broker):
        s = make_strategy(trading_mode="live")

        resp = client.post("/trade", json={"strategy_id": s.id, "market": "Mkt", "side": "YES", "notional": 5})

        assert resp.status_code == 200
        assert resp.json()["status"] == "failed"
        [trade] = session.exec(select(Trade)).all()
        assert trade.status == "failed"
        assert trade.pnl == 0.0

    def test_naive_close_time_accepted(self, client, session, make_strategy):
        s = make_strategy()

        resp = client.post(
            "/trade",
            json={"strategy_id": s.id, "market": "X", "side": "YES", "notional": 50, "pnl": 5, "closes_at": "2026-11-01T12:00:00"},
        )

        assert resp.status_code == 200
        [trade] = session.exec(select(Trade)).all()
        assert trade.closes_at.replace(tzinfo=timezone.utc) == datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)

    def test_ledger_write_failure(self, client, session, make_strategy, monkeypatch):
        s = make_strategy()

        def _fail(*args, **kwargs):
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(ledger, "record_trade", _fail)
        resp = client.post("/trade", json={"strategy_id": s.id, "market": "X", "side": "YES", "notional": 5})

        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Ledger write failed")
        assert session.exec(select(Trade)).all() == []

    def test_malformed_body(self, client, session, make_strategy):
        s = make_strategy()
        resp = client.post("/trade", json={"strategy_id": s.id, "market": "Mkt", "side": "UP", "notional": 5})
        assert resp.status_code == 400
        assert "side" in resp.json()["error"]
        assert session.exec(select(TradeLog)).all() == []

    def test_missing_fields(self, client):
        resp = client.post("/trade", json={"market": "Mkt"})
        assert resp.status_code == 400
        assert resp.json()["detail"]

    def test_unknown_strategy(self, client):
        resp = client.post("/trade", json={"strategy_id": 999, "market": "Mkt", "side": "YES", "notional": 5})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Strategy 999 not found"}

    def test_list_trades(self, client, make_strategy, add_trade):
        s = make_strategy()
        add_trade(s.id)
        add_trade(s.id)
        resp = client.get("/trades", params={"strategy_id": s.id})
        assert resp.status_code == 200
        assert len(resp.json()) == 2


class TestStrategies:
    def test_create_with_default_settings(self, client, session):
        resp = client.post("/strategies", json={"name": "Bonds", "kind": "bond_ladder"})
        assert resp.status_code == 201
        sid = resp.json()["id"]
        settings_row = session.exec(select(StrategySettings).where(StrategySettings.strategy_id == sid)).first()
        assert settings_row.max_trade_notional == 50.0

    def test_invalid_kind(self, client):
        assert client.post("/strategies", json={"name": "X", "kind": "yolo"}).status_code == 400

    def test_update_settings(self, client, make_strategy):
        s = make_strategy()
        resp = client.put(f"/strategies/{s.id}/settings", json={"certainty_threshold": 0.9})
        assert resp.status_code == 200
        assert resp.json()["certainty_threshold"] == 0.9
        assert resp.json()["liquidity_floor"] == 0.5

    def test_stats(self, client, make_strategy, add_trade):
        s = make_strategy()
        add_trade(s.id, pnl=2.5)
        body = client.get(f"/strategies/{s.id}/stats").json()
        assert body["trade_count"] == 1
        assert body["pnl"] == 2.5

    def test_mirror(self, client, session):
        resp = client.post("/strategies/mirror", json={"wallet_address": WALLET.upper().replace("0X", "0x"), "wallet_label": "Whale <1>"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["kind"] == "whale_mirror"
        assert body["mirror_wallets"] == [WALLET]
        assert body["name"] == "Mirror Whale 1"

        dup = client.post("/strategies/mirror", json={"wallet_address": WALLET})
        assert dup.status_code == 409

    def test_mirror_invalid_wallet(self, client):
        assert client.post("/strategies/mirror", json={"wallet_address": "0x123"}).status_code == 400

    def test_mode_switch_to_paper(self, client, make_strategy):
        s = make_strategy(trading_mode="live")
        resp = client.post(f"/strategies/{s.id}/mode", json={"mode": "paper"})
        assert resp.status_code == 200
        assert resp.json()["strategy"]["trading_mode"] == "paper"

    def test_mode_switch_live_without_credentials(self, client, make_strategy, no_broker):
        s = make_strategy()
        resp = client.post(f"/strategies/{s.id}/mode", json={"mode": "live"})
        assert resp.status_code == 422
        assert "credentials" in resp.json()["error"]

    @pytest.mark.parametrize("key", ["", Fernet.generate_key().decode()])
    def test_mode_switch_live_with_unusable_credential(self, client, session, make_strategy, monkeypatch, key):
        monkeypatch.setattr(settings, "encryption_key", key)
        reset_cipher()
        session.add(Credential(private_key_encrypted="not-a-fernet-token", funder_address=WALLET))
        session.commit()
        s = make_strategy()
        try:
            resp = client.post(f"/strategies/{s.id}/mode", json={"mode": "live"})
        finally:
            reset_cipher()

        assert resp.status_code == 422
        assert "credentials unusable" in resp.json()["error"]
        session.refresh(s)
        assert s.trading_mode == "paper"

    def test_mode_switch_bad_mode(self, client, make_strategy):
        s = make_strategy()
        assert client.post(f"/strategies/{s.id}/mode", json={"mode": "turbo"}).status_code == 400

    def test_kill_switch(self, client, session, make_strategy):
        make_strategy(trading_mode="live")
        resp = client.post("/strategies/kill-switch")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "affected": 1, "message": "1 strategies switched to paper mode"}
        assert all(s.trading_mode == "paper" for s in session.exec(select(Strategy)).all())


class TestTradeLogs:
    def test_limit_capped(self, client, session, make_strategy):
        s = make_strategy()
        session.add_all(TradeLog(strategy_id=s.id, event="paper_exec", mode="paper") for _ in range(510))
        session.commit()

        assert len(client.get("/trade-logs").json()["logs"]) == 100
        assert len(client.get("/trade-logs", params={"limit": 1000}).json()["logs"]) == 500


class TestEvents:
    def test_create_and_list(self, client):
        resp = client.post("/events", json={"event_type": "note", "message": "hello", "severity": "warning"})
        assert resp.status_code == 201
        events = client.get("/events").json()["events"]
        assert events[0]["message"] == "hello"

    def test_bad_severity(self, client):
        assert client.post("/events", json={"event_type": "note", "severity": "panic"}).status_code == 400


class TestAuth:
    def test_token_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_token", "s3cret")
        assert client.get("/strategies").status_code == 401
        ok = client.get("/strategies", headers={"Authorization": "Bearer s3cret"})
        assert ok.status_code == 200
        assert client.get("/api/system/health").status_code == 200


def test_credentials_never_expose_key(client, monkeypatch):
    monkeypatch.setattr(settings, "encryption_key", Fernet.generate_key().decode())
    reset_cipher()
    try:
        resp = client.post(
            "/credentials",
            json={"private_key": "11" * 32, "funder_address": WALLET},
        )
        assert resp.status_code == 201
        assert "private_key" not in resp.json()
        assert "private_key_encrypted" not in client.get("/credentials").json()[0]
    finally:
        reset_cipher()


def test_manual_audit(client, make_strategy, add_trade):
    s = make_strategy()
    add_trade(s.id, pnl=-40.0)
    body = client.post("/api/system/audit").json()
    assert body["tuned"][0]["strategy_id"] == s.id


def test_scheduler_status_when_disabled(client):
    body = client.get("/api/system/scheduler").json()
    assert body["running"] is False
    assert body["job_count"] == 0
