"""Trade ingestion and ledger API."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from agentdesk.api.deps import get_broker_factory, get_resolver, load_strategy, require_token
from agentdesk.database import get_session
from agentdesk.engine.executor import ProposedTrade, execute
from agentdesk.models.trade import Trade
from agentdesk.schemas.trade import TradeRead, TradeRequest
from agentdesk.services.market_resolver import MarketResolver
from agentdesk.utils.constants import LIVE

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trades"], dependencies=[Depends(require_token)])


@router.post("/trade")
async def submit_trade(
    body: TradeRequest,
    session: Session = Depends(get_session),
    broker_factory=Depends(get_broker_factory),
    resolver: MarketResolver = Depends(get_resolver),
):
    """Run one proposed trade through the safeguards and record it.

    Live order failures are still a 200: the failure is recorded in the ledger.
    """
    strategy = load_strategy(session, body.strategy_id)
    proposed = ProposedTrade.model_validate(body.model_dump(exclude={"strategy_id"}))

    broker = None
    if (strategy.trading_mode or "paper") == LIVE:
        try:
            broker = broker_factory(session)
        except (ValueError, RuntimeError) as e:
            logger.error(f"[strategy_{strategy.id}] Cannot build broker client: {e}")

    try:
        outcome = await execute(session, strategy, proposed, broker=broker, resolver=resolver)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[strategy_{strategy.id}] Ledger write failed")
        return JSONResponse(status_code=500, content={"error": f"Ledger write failed: {e.__class__.__name__}"})

    if outcome.blocked:
        return JSONResponse(status_code=400, content={"error": outcome.reason})

    return {
        "ok": True,
        "status": outcome.status,
        "trade_id": outcome.trade_id,
        "order_id": outcome.order_id,
        "error": outcome.error,
    }


@router.get("/trades", response_model=list[TradeRead])
def list_trades(
    strategy_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
):
    stmt = select(Trade).order_by(Trade.executed_at.desc(), Trade.id.desc())
    if strategy_id is not None:
        stmt = stmt.where(Trade.strategy_id == strategy_id)
    stmt = stmt.offset(offset).limit(min(limit, 500))
    return session.exec(stmt).all()


@router.get("/trades/{trade_id}", response_model=TradeRead)
def get_trade(trade_id: int, session: Session = Depends(get_session)):
    trade = session.get(Trade, trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade
