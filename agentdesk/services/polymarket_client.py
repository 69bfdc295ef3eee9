"""Polymarket CLOB client wrapper for live order placement.

Wraps the synchronous py-clob-client SDK. Every SDK call runs in the default
executor so the event loop is never blocked by signing or HTTP.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from sqlmodel import Session, select

from agentdesk.config import settings
from agentdesk.exceptions import BrokerError
from agentdesk.models.credential import Credential
from agentdesk.services.encryption import decrypt_secret

logger = logging.getLogger(__name__)


@dataclass
class OrderRequest:
    token_id: str
    price: float
    size: float  # shares
    side: str = "BUY"  # "BUY" or "SELL"
    tick_size: str = "0.01"
    neg_risk: bool = False
    order_type: str = "GTC"  # "GTC", "FOK", "GTD"

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "price": self.price,
            "size": self.size,
            "side": self.side,
            "tick_size": self.tick_size,
            "neg_risk": self.neg_risk,
            "order_type": self.order_type,
        }


@dataclass
class OrderResult:
    order_id: str | None
    status: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class PolymarketClient:
    """Authenticated trading client for the Polymarket CLOB."""

    def __init__(
        self,
        host: str,
        private_key: str,
        funder: str,
        signature_type: int = 0,
        chain_id: int = 137,
    ):
        self.host = host
        self.private_key = private_key
        self.funder = funder
        self.signature_type = signature_type
        self.chain_id = chain_id
        self._clob = None

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def _ensure_client(self):
        """Lazily build the SDK client and derive L2 API credentials."""
        if self._clob is not None:
            return

        from py_clob_client.client import ClobClient

        def _build():
            client = ClobClient(
                self.host,
                key=self.private_key,
                chain_id=self.chain_id,
                signature_type=self.signature_type,
                funder=self.funder or None,
            )
            client.set_api_creds(client.create_or_derive_api_creds())
            return client

        try:
            self._clob = await self._run(_build)
        except Exception as e:
            raise BrokerError(f"Failed to initialize CLOB client: {e}") from e
        logger.info("CLOB client initialized")

    async def test_connection(self) -> dict:
        """Check that the CLOB answers and credentials derive."""
        await self._ensure_client()
        ok = await self._run(self._clob.get_ok)
        return {"ok": bool(ok), "host": self.host, "chain_id": self.chain_id}

    async def place_order(self, request: OrderRequest) -> OrderResult:
        """Sign and post a limit order. Raises BrokerError if the CLOB rejects it."""
        if not 0.01 <= request.price <= 0.99:
            raise BrokerError(f"Price must be between 0.01 and 0.99, got {request.price}")
        if request.size <= 0:
            raise BrokerError(f"Order size must be positive, got {request.size}")

        await self._ensure_client()

        from py_clob_client.clob_types import OrderArgs, OrderType, PartialCreateOrderOptions
        from py_clob_client.order_builder.constants import BUY, SELL

        args = OrderArgs(
            token_id=request.token_id,
            price=request.price,
            size=request.size,
            side=BUY if request.side == "BUY" else SELL,
        )
        options = PartialCreateOrderOptions(
            tick_size=request.tick_size,
            neg_risk=request.neg_risk,
        )
        try:
            signed = await self._run(self._clob.create_order, args, options)
            resp = await self._run(self._clob.post_order, signed, getattr(OrderType, request.order_type))
        except Exception as e:
            raise BrokerError(str(e)) from e

        resp = resp or {}
        if not resp.get("success", True) or resp.get("errorMsg"):
            raise BrokerError(resp.get("errorMsg") or "Order rejected by CLOB")

        order_id = resp.get("orderID") or resp.get("orderId")
        logger.info(
            f"Order posted: {order_id} {request.side} {request.size} @ {request.price} "
            f"token={request.token_id[:10]}... status={resp.get('status')}"
        )
        return OrderResult(order_id=order_id, status=resp.get("status"), raw=resp)


def build_broker(session: Session) -> PolymarketClient | None:
    """Build a client from the active credential, or None if none is configured."""
    cred = session.exec(
        select(Credential).where(Credential.is_active == True)  # noqa: E712
    ).first()
    if not cred:
        return None

    return PolymarketClient(
        host=cred.clob_host or settings.clob_host,
        private_key=decrypt_secret(cred.private_key_encrypted),
        funder=cred.funder_address,
        signature_type=cred.signature_type,
        chain_id=settings.chain_id,
    )
