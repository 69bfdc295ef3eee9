"""Shared API dependencies."""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from agentdesk.config import settings
from agentdesk.database import get_session
from agentdesk.exceptions import StrategyNotFound
from agentdesk.models.strategy import Strategy
from agentdesk.services.market_resolver import MarketResolver
from agentdesk.services.polymarket_client import build_broker

bearer_scheme = HTTPBearer(auto_error=False)


def require_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
):
    """Check the shared bearer token. Open when AD_API_TOKEN is unset (dev mode)."""
    if not settings.api_token:
        return
    if credentials is None or not secrets.compare_digest(
        credentials.credentials, settings.api_token
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


def load_strategy(session: Session, strategy_id: int) -> Strategy:
    strategy = session.get(Strategy, strategy_id)
    if not strategy:
        raise StrategyNotFound(strategy_id)
    return strategy


def get_broker_factory():
    """Factory the routes use to build a broker client from the active credential."""
    return build_broker


def get_resolver() -> MarketResolver:
    return MarketResolver()
