"""Pydantic schemas for Credential API."""

from datetime import datetime
import re

from pydantic import BaseModel, Field, field_validator

_HEX_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _clean_host(value: str) -> str:
    host = value.strip()
    if not host:
        raise ValueError("must not be empty")
    if not (host.startswith("http://") or host.startswith("https://")):
        raise ValueError("must start with http:// or https://")
    return host.rstrip("/")


class CredentialCreate(BaseModel):
    name: str = Field(default="default", min_length=1, max_length=120)
    clob_host: str = "https://clob.polymarket.com"
    private_key: str  # Raw hex wallet key, encrypted before storage
    funder_address: str
    signature_type: int = Field(default=0, ge=0, le=2)

    @field_validator("clob_host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        return _clean_host(value)

    @field_validator("private_key")
    @classmethod
    def _validate_private_key(cls, value: str) -> str:
        key = value.strip()
        if not _HEX_KEY_RE.fullmatch(key):
            raise ValueError("must be a 64-char hex string, with optional 0x prefix")
        return key

    @field_validator("funder_address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        address = value.strip()
        if not _ADDRESS_RE.fullmatch(address):
            raise ValueError("must be a 0x-prefixed 40-char hex address")
        return address


class CredentialRead(BaseModel):
    id: int
    name: str
    clob_host: str
    funder_address: str
    signature_type: int
    is_active: bool
    created_at: datetime
    # private_key is NEVER exposed

    model_config = {"from_attributes": True}
