"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentdesk.config import settings
from agentdesk.database import create_db_and_tables
from agentdesk.exceptions import ModeSwitchError, StrategyNotFound
from agentdesk.utils.logging import setup_logging
from agentdesk.api import credentials, dashboard, events, strategies, system, trade_logs, trades

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()

    from agentdesk.engine.scheduler import start_scheduler, stop_scheduler
    if settings.scheduler_enabled:
        start_scheduler()

    # Start Telegram bot if configured
    telegram_bot = None
    if settings.telegram_bot_token:
        from agentdesk.services.telegram_bot import init_bot
        telegram_bot = init_bot()
        telegram_bot.start()

    yield

    if telegram_bot:
        telegram_bot.stop()
    stop_scheduler()


app = FastAPI(
    title="AgentDesk",
    description="Risk-gated execution and audit ledger for prediction-market trading strategies",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "error": f"{field}: {message}" if field else message,
            "detail": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in errors
            ],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StrategyNotFound)
async def strategy_not_found_handler(request: Request, exc: StrategyNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(ModeSwitchError)
async def mode_switch_handler(request: Request, exc: ModeSwitchError):
    logger.warning(f"Mode switch refused: {exc}")
    return JSONResponse(status_code=422, content={"error": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


# Mount routers
app.include_router(trades.router)
app.include_router(strategies.router)
app.include_router(trade_logs.router)
app.include_router(events.router)
app.include_router(credentials.router)
app.include_router(dashboard.router)
app.include_router(system.router)
