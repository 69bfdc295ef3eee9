"""Kill switch: force every strategy back to paper mode in one statement."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session

from agentdesk.models.strategy import Strategy
from agentdesk.services import ledger
from agentdesk.services.telegram_bot import notify
from agentdesk.utils.constants import KILL_SWITCH, PAPER

logger = logging.getLogger(__name__)


@dataclass
class KillSwitchResult:
    affected: int

    @property
    def message(self) -> str:
        return f"{self.affected} strategies switched to paper mode"


def kill_all(session: Session) -> KillSwitchResult:
    """Switch all non-paper strategies to paper. Open positions and trades are untouched."""
    now = datetime.now(timezone.utc)
    stmt = (
        update(Strategy)
        .where(Strategy.trading_mode != PAPER)
        .values(trading_mode=PAPER, mode_switched_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    affected = session.execute(stmt).rowcount or 0
    session.commit()
    # Refresh any strategies already loaded in this session
    session.expire_all()

    result = KillSwitchResult(affected=affected)
    ledger.log_trade_event(
        session,
        KILL_SWITCH,
        PAPER,
        result=f"Emergency stop: {affected} strategies switched to paper",
    )
    ledger.record_event(session, "kill_switch", result.message, severity="warning")
    logger.warning(f"[kill_switch] {result.message}")

    notify(f"KILL SWITCH: {result.message}")
    return result
