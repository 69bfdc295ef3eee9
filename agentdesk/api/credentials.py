"""CRUD API for Polymarket wallet credentials."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from agentdesk.api.deps import require_token
from agentdesk.config import settings
from agentdesk.database import get_session
from agentdesk.models.credential import Credential
from agentdesk.schemas.credential import CredentialCreate, CredentialRead
from agentdesk.services.encryption import decrypt_secret, encrypt_secret, mask_address

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credentials", tags=["credentials"], dependencies=[Depends(require_token)])


def store_credential(session: Session, data: CredentialCreate) -> Credential:
    """Encrypt and save a credential; it becomes the only active one."""
    for existing in session.exec(select(Credential).where(Credential.is_active == True)).all():  # noqa: E712
        existing.is_active = False
        session.add(existing)

    cred = Credential(
        name=data.name,
        clob_host=data.clob_host,
        private_key_encrypted=encrypt_secret(data.private_key),
        funder_address=data.funder_address,
        signature_type=data.signature_type,
    )
    session.add(cred)
    session.commit()
    session.refresh(cred)
    logger.info(f"Stored credential '{cred.name}' for {mask_address(cred.funder_address)}")
    return cred


@router.get("", response_model=list[CredentialRead])
def list_credentials(session: Session = Depends(get_session)):
    return session.exec(select(Credential)).all()


@router.post("", response_model=CredentialRead, status_code=201)
def create_credential(data: CredentialCreate, session: Session = Depends(get_session)):
    return store_credential(session, data)


@router.post("/{cred_id}/test")
async def test_credential(cred_id: int, session: Session = Depends(get_session)):
    """Test connectivity to the CLOB using this credential."""
    cred = session.get(Credential, cred_id)
    if not cred:
        raise HTTPException(status_code=404, detail="Credential not found")

    from agentdesk.services.polymarket_client import PolymarketClient

    try:
        client = PolymarketClient(
            host=cred.clob_host,
            private_key=decrypt_secret(cred.private_key_encrypted),
            funder=cred.funder_address,
            signature_type=cred.signature_type,
            chain_id=settings.chain_id,
        )
        return await client.test_connection()
    except Exception as e:
        logger.warning(f"Credential {cred_id} test failed: {e}")
        return {"ok": False, "message": str(e)}
