import json
from types import SimpleNamespace

import pytest
from solana.constants import LAMPORTS_PER_SOL
from solders.hash import Hash
from solders.keypair import Keypair
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from minter.config import Config, SolanaSettings
from minter.services import solana_service


CONFIRMATION_STATUSES = {
    "processed": TransactionConfirmationStatus.Processed,
    "confirmed": TransactionConfirmationStatus.Confirmed,
    "finalized": TransactionConfirmationStatus.Finalized,
}

RENT_EXEMPT_MINT_LAMPORTS = 1461600


class FakeSolanaClient:
    """In-memory stand-in for solana.rpc.async_api.AsyncClient

    statuses is consumed one entry per get_signature_statuses call:
    None (unknown/pending), a confirmation name, an Exception to raise,
    or {"err": ...} for an on-chain failure.
    """

    def __init__(self, balance=LAMPORTS_PER_SOL, statuses=None,
                 blockhash_error=None, balance_error=None, send_error=None):
        self.balance = balance
        self.statuses = list(statuses or [])
        self.blockhash_error = blockhash_error
        self.balance_error = balance_error
        self.send_error = send_error
        self.blockhash = Hash(bytes([7] * 32))
        self.sent = []
        self.status_calls = 0
        self.closed = False

    async def get_balance(self, pubkey):
        if self.balance_error:
            raise self.balance_error
        return SimpleNamespace(value=self.balance)

    async def get_latest_blockhash(self):
        if self.blockhash_error:
            raise self.blockhash_error
        return SimpleNamespace(value=SimpleNamespace(blockhash=self.blockhash, last_valid_block_height=100))

    async def get_minimum_balance_for_rent_exemption(self, size):
        return SimpleNamespace(value=RENT_EXEMPT_MINT_LAMPORTS)

    async def send_raw_transaction(self, raw, opts=None):
        if self.send_error:
            raise self.send_error
        self.sent.append((raw, opts))
        return SimpleNamespace(value=Transaction.from_bytes(raw).signatures[0])

    async def get_signature_statuses(self, signatures):
        self.status_calls += 1
        entry = self.statuses.pop(0) if self.statuses else None
        if isinstance(entry, Exception):
            raise entry
        if entry is None:
            return SimpleNamespace(value=[None])
        if isinstance(entry, dict):
            return SimpleNamespace(value=[SimpleNamespace(
                err=entry["err"], confirmation_status=None, slot=10, confirmations=None,
            )])
        return SimpleNamespace(value=[SimpleNamespace(
            err=None,
            confirmation_status=CONFIRMATION_STATUSES[entry],
            slot=42,
            confirmations=None if entry == "finalized" else 1,
        )])

    async def close(self):
        self.closed = True


@pytest.fixture
def payer():
    return Keypair()


@pytest.fixture
def keypair_file(tmp_path, payer):
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(payer))))
    return path


@pytest.fixture
def config(tmp_path, keypair_file):
    return Config(
        solana=SolanaSettings(rpc_url="http://localhost:8899", keypair_path=str(keypair_file)),
        deployment_index=str(tmp_path / "deployment-index.json"),
    )


@pytest.fixture
def sleeps(monkeypatch):
    """Record polling waits instead of sleeping"""
    recorded = []

    async def fake_sleep(seconds, *args, **kwargs):
        recorded.append(seconds)

    monkeypatch.setattr(solana_service.asyncio, "sleep", fake_sleep)
    return recorded
