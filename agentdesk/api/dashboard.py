"""Dashboard API: summary stats across strategies."""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from agentdesk.api.deps import require_token
from agentdesk.database import get_session
from agentdesk.models.strategy import Strategy
from agentdesk.services import ledger
from agentdesk.utils.constants import LIVE

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"], dependencies=[Depends(require_token)])


@router.get("/summary")
def dashboard_summary(session: Session = Depends(get_session)):
    """Aggregated stats across all strategies, each over its current mode epoch."""
    strategies = session.exec(select(Strategy).order_by(Strategy.id)).all()
    stats = [ledger.strategy_stats(session, s) for s in strategies]

    return {
        "total_strategies": len(strategies),
        "live_strategies": sum(1 for s in strategies if s.trading_mode == LIVE),
        "total_trades": sum(s["trade_count"] for s in stats),
        "failed_trades": sum(s["failed_count"] for s in stats),
        "total_pnl": round(sum(s["pnl"] for s in stats), 2),
        "strategies": stats,
    }
