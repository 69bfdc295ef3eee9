"""Strategy CRUD, settings, mode switching and the kill switch."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from agentdesk.api.deps import get_broker_factory, load_strategy, require_token
from agentdesk.database import get_session
from agentdesk.models.strategy import Strategy
from agentdesk.models.strategy_settings import StrategySettings
from agentdesk.schemas.strategy import (
    MirrorCreate,
    ModeRequest,
    StrategyCreate,
    StrategyRead,
    StrategySettingsRead,
    StrategySettingsUpdate,
)
from agentdesk.services import ledger
from agentdesk.services.kill_switch import kill_all
from agentdesk.services.strategy_modes import starting_capital, switch_mode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strategies", tags=["strategies"], dependencies=[Depends(require_token)])


def _settings_for(session: Session, strategy_id: int) -> StrategySettings:
    row = session.exec(
        select(StrategySettings).where(StrategySettings.strategy_id == strategy_id)
    ).first()
    if row is None:
        row = StrategySettings(strategy_id=strategy_id)
        session.add(row)
        session.commit()
        session.refresh(row)
    return row


def _create_strategy(session: Session, strategy: Strategy) -> Strategy:
    strategy.paper_cash = starting_capital(strategy, strategy.trading_mode)
    session.add(strategy)
    session.commit()
    session.refresh(strategy)
    _settings_for(session, strategy.id)
    logger.info(f"[strategy_{strategy.id}] Created {strategy.kind} strategy '{strategy.name}'")
    return strategy


@router.get("", response_model=list[StrategyRead])
def list_strategies(session: Session = Depends(get_session)):
    return session.exec(select(Strategy).order_by(Strategy.id)).all()


@router.post("", response_model=StrategyRead, status_code=201)
def create_strategy(data: StrategyCreate, session: Session = Depends(get_session)):
    return _create_strategy(session, Strategy(**data.model_dump()))


@router.post("/kill-switch")
def kill_switch(session: Session = Depends(get_session)):
    """Force every live strategy back to paper mode."""
    result = kill_all(session)
    return {"success": True, "affected": result.affected, "message": result.message}


@router.post("/mirror", response_model=StrategyRead, status_code=201)
def create_mirror(data: MirrorCreate, session: Session = Depends(get_session)):
    """Create a whale-mirror strategy following one wallet."""
    for existing in session.exec(select(Strategy).where(Strategy.kind == "whale_mirror")).all():
        if data.wallet_address in (existing.mirror_wallets or []):
            return JSONResponse(
                status_code=409,
                content={"error": f"Wallet already mirrored by strategy {existing.id}"},
            )

    strategy = Strategy(
        name=f"Mirror {data.display_label()}",
        kind="whale_mirror",
        paper_capital=100.0,
        mirror_wallets=[data.wallet_address],
    )
    return _create_strategy(session, strategy)


@router.get("/{strategy_id}", response_model=StrategyRead)
def get_strategy(strategy_id: int, session: Session = Depends(get_session)):
    return load_strategy(session, strategy_id)


@router.get("/{strategy_id}/stats")
def get_strategy_stats(strategy_id: int, session: Session = Depends(get_session)):
    strategy = load_strategy(session, strategy_id)
    return ledger.strategy_stats(session, strategy)


@router.get("/{strategy_id}/settings", response_model=StrategySettingsRead)
def get_settings(strategy_id: int, session: Session = Depends(get_session)):
    load_strategy(session, strategy_id)
    return _settings_for(session, strategy_id)


@router.put("/{strategy_id}/settings", response_model=StrategySettingsRead)
def update_settings(
    strategy_id: int,
    data: StrategySettingsUpdate,
    session: Session = Depends(get_session),
):
    load_strategy(session, strategy_id)
    row = _settings_for(session, strategy_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(row, key, value)
    row.updated_at = datetime.now(timezone.utc)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


@router.post("/{strategy_id}/mode")
async def change_mode(
    strategy_id: int,
    body: ModeRequest,
    session: Session = Depends(get_session),
    broker_factory=Depends(get_broker_factory),
):
    strategy = load_strategy(session, strategy_id)
    strategy = await switch_mode(session, strategy, body.mode, broker_factory)
    return {"strategy": StrategyRead.model_validate(strategy).model_dump(mode="json")}
