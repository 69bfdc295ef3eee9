"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'agentdesk.db'}"
    encryption_key: str = ""  # Fernet key; generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]  # dashboard dev server

    # Shared bearer token for callers (signal runners, dashboard). Empty = open.
    api_token: str = ""

    # Polymarket
    clob_host: str = "https://clob.polymarket.com"
    gamma_api_url: str = "https://gamma-api.polymarket.com"
    chain_id: int = 137  # Polygon mainnet
    http_timeout_seconds: float = 10.0

    # Execution
    safeguard_paper_trades: bool = False
    serialize_executions: bool = False
    watch_wallets: list[str] = []

    # Periodic jobs
    scheduler_enabled: bool = False
    audit_interval_hours: float = 4.0

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_ids: list[int] = []

    model_config = {"env_prefix": "AD_", "env_file": ".env"}


settings = Settings()
