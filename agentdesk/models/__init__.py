"""Database models."""

from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.models.trade import Trade
from agentdesk.models.trade_log import TradeLog
from agentdesk.models.event import Event
from agentdesk.models.credential import Credential

__all__ = [
    "Strategy",
    "StrategySettings",
    "Trade",
    "TradeLog",
    "Event",
    "Credential",
]
