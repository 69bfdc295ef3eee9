"""CLI tool for admin operations.

Usage:
    agentdesk create-credential
    agentdesk kill-switch
    agentdesk audit
"""

import sys
import getpass

from pydantic import ValidationError
from sqlmodel import Session

from agentdesk.database import engine, create_db_and_tables
from agentdesk.utils.logging import setup_logging

COMMANDS = ("create-credential", "kill-switch", "audit")


def create_credential():
    """Store an encrypted Polymarket wallet credential and make it active."""
    from agentdesk.api.credentials import store_credential
    from agentdesk.schemas.credential import CredentialCreate
    from agentdesk.services.encryption import mask_address

    create_db_and_tables()

    name = input("Name [default]: ").strip() or "default"
    funder = input("Funder address (0x...): ").strip()
    private_key = getpass.getpass("Private key (hex): ")
    signature_type = input("Signature type [0]: ").strip() or "0"

    try:
        data = CredentialCreate(
            name=name,
            funder_address=funder,
            private_key=private_key,
            signature_type=int(signature_type),
        )
    except (ValidationError, ValueError) as e:
        print(f"Invalid credential: {e}")
        sys.exit(1)

    with Session(engine) as session:
        cred = store_credential(session, data)
        print(f"\nCredential '{cred.name}' stored for {mask_address(cred.funder_address)} (id {cred.id}).")


def kill_switch():
    """Switch every live strategy back to paper."""
    from agentdesk.services.kill_switch import kill_all

    create_db_and_tables()
    with Session(engine) as session:
        result = kill_all(session)
    print(result.message)


def audit():
    """Run one drawdown auditor pass now."""
    from agentdesk.engine.auditor import run_audit

    create_db_and_tables()
    with Session(engine) as session:
        results = run_audit(session)
    if not results:
        print("No strategies needed tuning.")
    for r in results:
        print(f"{r.strategy_name}: drawdown {r.drawdown * 100:.1f}% -> {r.changes}")


def main():
    if len(sys.argv) < 2:
        print("Usage: agentdesk <command>")
        print(f"Commands: {', '.join(COMMANDS)}")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]
    if command == "create-credential":
        create_credential()
    elif command == "kill-switch":
        kill_switch()
    elif command == "audit":
        audit()
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
