"""Credential model: encrypted Polymarket wallet credentials."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Credential(SQLModel, table=True):
    __tablename__ = "credential"

    id: int | None = Field(default=None, primary_key=True)
    name: str = "default"
    clob_host: str = "https://clob.polymarket.com"
    private_key_encrypted: str = ""  # Fernet-encrypted hex private key
    funder_address: str = ""  # wallet public address
    signature_type: int = 0  # 0 = EOA, 1 = email/magic, 2 = browser proxy
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
