"""Audit trail of execution, mode and kill-switch events."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from agentdesk.api.deps import require_token
from agentdesk.database import get_session
from agentdesk.schemas.trade import TradeLogRead
from agentdesk.services import ledger
from agentdesk.utils.constants import DEFAULT_LOG_LIMIT

router = APIRouter(tags=["trade-logs"], dependencies=[Depends(require_token)])


@router.get("/trade-logs")
def list_trade_logs(
    strategy_id: int | None = None,
    limit: int = DEFAULT_LOG_LIMIT,
    session: Session = Depends(get_session),
):
    rows = ledger.recent_trade_logs(session, strategy_id=strategy_id, limit=limit)
    return {"logs": [TradeLogRead.model_validate(r).model_dump(mode="json") for r in rows]}
