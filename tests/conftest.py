"""Shared fixtures: an in-memory database and an API client bound to it."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import agentdesk.models  # noqa: F401  registers tables on the metadata
from agentdesk.config import settings
from agentdesk.database import get_session
from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.models.trade import Trade


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine, monkeypatch):
    from agentdesk.main import app

    monkeypatch.setattr(settings, "api_token", "")

    def _override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    # Lifespan is not entered: no scheduler, no bot, no file database.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_strategy(session):
    def _make(**overrides) -> Strategy:
        fields = {"name": "Test strategy", "paper_capital": 100.0, "paper_cash": 100.0}
        fields.update(overrides)
        strategy = Strategy(**fields)
        session.add(strategy)
        session.commit()
        session.refresh(strategy)
        session.add(StrategySettings(strategy_id=strategy.id))
        session.commit()
        return strategy

    return _make


@pytest.fixture
def add_trade(session):
    def _add(strategy_id: int, pnl: float = 0.0, executed_at: datetime | None = None, **overrides) -> Trade:
        fields = {
            "strategy_id": strategy_id,
            "market": "Will it rain?",
            "side": "YES",
            "notional": 10.0,
            "pnl": pnl,
            "trading_mode": "paper",
            "executed_at": executed_at or datetime.now(timezone.utc),
        }
        fields.update(overrides)
        trade = Trade(**fields)
        session.add(trade)
        session.commit()
        session.refresh(trade)
        return trade

    return _add
