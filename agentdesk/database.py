"""SQLModel database engine and session management."""

import logging

from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from agentdesk.config import settings

logger = logging.getLogger(__name__)

# SQLite needs check_same_thread=False; PostgreSQL does not
connect_args = {}
engine_kwargs = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False
    # In-memory databases must share one connection across sessions
    if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args=connect_args,
    **engine_kwargs,
)


def _run_migrations():
    """Run lightweight schema migrations for columns added after first release."""
    from sqlalchemy import text

    inspector = inspect(engine)
    tables = inspector.get_table_names()

    if "strategies" not in tables or "trades" not in tables:
        return

    columns = {col["name"] for col in inspector.get_columns("strategies")}
    if "kind" not in columns:
        logger.info("Migrating: adding strategies.kind")
        with engine.connect() as conn:
            conn.execute(
                text("ALTER TABLE strategies ADD COLUMN kind VARCHAR DEFAULT 'generic' NOT NULL")
            )
            conn.commit()

    trade_columns = {col["name"] for col in inspector.get_columns("trades")}
    if "status" not in trade_columns:
        logger.info("Migrating: adding trades.status / trades.error")
        with engine.connect() as conn:
            conn.execute(text("ALTER TABLE trades ADD COLUMN status VARCHAR DEFAULT 'filled' NOT NULL"))
            conn.execute(text("ALTER TABLE trades ADD COLUMN error VARCHAR"))
            conn.commit()


def create_db_and_tables():
    """Create all tables. Called on startup."""
    import agentdesk.models  # noqa: F401  registers tables on the metadata

    SQLModel.metadata.create_all(engine)
    _run_migrations()


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
