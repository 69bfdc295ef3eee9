"""Operational event feed."""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from agentdesk.api.deps import load_strategy, require_token
from agentdesk.database import get_session
from agentdesk.models.event import Event
from agentdesk.schemas.trade import EventCreate
from agentdesk.services import ledger
from agentdesk.utils.constants import MAX_LOG_LIMIT

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(require_token)])


@router.get("")
def list_events(limit: int = 50, session: Session = Depends(get_session)):
    limit = max(1, min(limit, MAX_LOG_LIMIT))
    rows = session.exec(select(Event).order_by(Event.created_at.desc(), Event.id.desc()).limit(limit)).all()
    return {"events": [r.model_dump(mode="json") for r in rows]}


@router.post("", status_code=201)
def create_event(data: EventCreate, session: Session = Depends(get_session)):
    if data.strategy_id is not None:
        load_strategy(session, data.strategy_id)
    row = ledger.record_event(
        session,
        data.event_type,
        data.message,
        severity=data.severity,
        strategy_id=data.strategy_id,
    )
    return {"ok": True, "event": row.model_dump(mode="json")}
