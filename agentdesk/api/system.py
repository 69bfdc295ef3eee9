"""System API: health check, scheduler status and a manual auditor run."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from agentdesk.api.deps import require_token
from agentdesk.database import get_session

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/scheduler", dependencies=[Depends(require_token)])
def scheduler_status():
    """Current scheduler state with job details."""
    from agentdesk.engine.scheduler import get_scheduler_status
    return get_scheduler_status()


@router.post("/audit", dependencies=[Depends(require_token)])
def trigger_audit(session: Session = Depends(get_session)):
    """Run the drawdown auditor over every strategy now."""
    from agentdesk.engine.auditor import run_audit

    results = run_audit(session)
    return {
        "status": "ok",
        "tuned": [
            {
                "strategy_id": r.strategy_id,
                "strategy_name": r.strategy_name,
                "drawdown": round(r.drawdown, 4),
                "changes": r.changes,
            }
            for r in results
        ],
    }
