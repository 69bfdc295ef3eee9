"""Market metadata lookups against the Polymarket Gamma API.

Maps a market slug to the CLOB token ids needed to place an order, and fetches
close/resolution status for the resolve refresher.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from agentdesk.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MarketTokens:
    yes_token_id: str
    no_token_id: str
    tick_size: str = "0.01"
    neg_risk: bool = False
    yes_price: float | None = None
    no_price: float | None = None

    def token_for(self, side: str) -> str:
        return self.yes_token_id if side == "YES" else self.no_token_id

    def price_for(self, side: str) -> float | None:
        return self.yes_price if side == "YES" else self.no_price


def _json_list(value) -> list:
    """Gamma encodes list fields as JSON strings ('["a","b"]')."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_market_tokens(market: dict) -> MarketTokens | None:
    """Build MarketTokens from a Gamma market object, or None if it is not tradable."""
    token_ids = _json_list(market.get("clobTokenIds"))
    if len(token_ids) < 2:
        return None

    prices = [float(p) for p in _json_list(market.get("outcomePrices"))]
    tick = market.get("orderPriceMinTickSize") or market.get("minimum_tick_size") or 0.01

    return MarketTokens(
        yes_token_id=str(token_ids[0]),
        no_token_id=str(token_ids[1]),
        tick_size=str(tick),
        neg_risk=bool(market.get("negRisk", False)),
        yes_price=prices[0] if len(prices) > 0 else None,
        no_price=prices[1] if len(prices) > 1 else None,
    )


class MarketResolver:
    """Async Gamma API client."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.gamma_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    async def _get_market(self, slug: str) -> dict | None:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            resp = await client.get("/markets", params={"slug": slug})
            resp.raise_for_status()
            data = resp.json()

        if isinstance(data, list):
            return data[0] if data else None
        return data or None

    async def resolve(self, slug: str | None) -> MarketTokens | None:
        """Look up tradable token ids for a market slug. None if unknown."""
        if not slug:
            return None
        market = await self._get_market(slug)
        if market is None:
            logger.info(f"[resolver] No market found for slug={slug}")
            return None
        return parse_market_tokens(market)

    async def fetch_market(self, slug: str) -> dict | None:
        """Close time and resolution status for a market slug."""
        market = await self._get_market(slug)
        if market is None:
            return None
        return {
            "closes_at": _parse_datetime(market.get("endDate")),
            "is_resolved": bool(market.get("closed", False)),
        }
