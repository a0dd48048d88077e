import asyncio

import pytest
from solders.keypair import Keypair
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, MINT_LEN, TOKEN_PROGRAM_ID

from minter.models import TransactionStatus
from minter.errors import (
    ConfirmationTimeoutError,
    InsufficientFundsError,
    NetworkUnavailableError,
    OnChainExecutionError,
    SubmissionError,
    TransactionBuildError,
)
from minter.services.solana_service import (
    MIN_BALANCE_LAMPORTS,
    SolanaService,
    explorer_link,
    load_keypair,
    confirmation_state,
    parse_mint_account,
)

from conftest import CONFIRMATION_STATUSES, FakeSolanaClient, RENT_EXEMPT_MINT_LAMPORTS


def _signature():
    return str(Keypair().sign_message(b"mint"))


def test_load_keypair_round_trip(keypair_file, payer) -> None:
    assert load_keypair(str(keypair_file)).pubkey() == payer.pubkey()


def test_explorer_link_encodes_rpc_url() -> None:
    link = explorer_link("tx", "abc", "https://devnet-rpc.solayer.org")
    assert link == (
        "https://explorer.solana.com/tx/abc?cluster=custom"
        "&customUrl=https%3A%2F%2Fdevnet-rpc.solayer.org"
    )


def test_parse_mint_account() -> None:
    data = bytearray(MINT_LEN)
    data[0] = 1
    data[36:44] = (1).to_bytes(8, "little")
    data[45] = 1

    info = parse_mint_account(bytes(data))

    assert info["supply"] == 1
    assert info["decimals"] == 0
    assert info["is_initialized"] is True
    assert info["mint_authority_present"] is True
    assert info["freeze_authority_present"] is False

    with pytest.raises(ValueError):
        parse_mint_account(b"\x00" * 10)


# Prerequisites

def test_prerequisites_pass(payer) -> None:
    service = SolanaService(FakeSolanaClient(balance=2_000_000_000), payer)
    assert asyncio.run(service.check_prerequisites()) == 2.0


def test_low_balance_is_insufficient_funds(payer) -> None:
    client = FakeSolanaClient(balance=MIN_BALANCE_LAMPORTS - 1)
    service = SolanaService(client, payer)

    with pytest.raises(InsufficientFundsError, match="Need at least 0.01 SOL"):
        asyncio.run(service.check_prerequisites())


def test_balance_failure_is_network_unavailable(payer) -> None:
    service = SolanaService(FakeSolanaClient(balance_error=OSError("unreachable")), payer)

    with pytest.raises(NetworkUnavailableError, match="balance"):
        asyncio.run(service.check_prerequisites())


def test_blockhash_failure_is_network_unavailable(payer) -> None:
    service = SolanaService(FakeSolanaClient(blockhash_error=OSError("timeout")), payer)

    with pytest.raises(NetworkUnavailableError, match="connectivity"):
        asyncio.run(service.check_prerequisites())


# Transaction building

def test_mint_transaction_layout(payer) -> None:
    client = FakeSolanaClient()
    service = SolanaService(client, payer)
    mint = Keypair()

    prepared = asyncio.run(service.build_mint_transaction(mint))

    create, init_mint, ata, mint_to = prepared.instructions
    assert [ix.program_id for ix in prepared.instructions] == [
        SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID, ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID,
    ]

    assert int.from_bytes(bytes(create.data)[4:12], "little") == RENT_EXEMPT_MINT_LAMPORTS
    assert int.from_bytes(bytes(create.data)[12:20], "little") == MINT_LEN
    assert create.accounts[1].pubkey == mint.pubkey()

    assert bytes(init_mint.data)[0] == 0
    assert bytes(init_mint.data)[1] == 0  # decimals

    assert ata.accounts[1].pubkey == prepared.token_account
    assert ata.accounts[3].pubkey == mint.pubkey()

    assert bytes(mint_to.data)[0] == 7
    assert int.from_bytes(bytes(mint_to.data)[1:9], "little") == 1
    assert mint_to.accounts[1].pubkey == prepared.token_account

    tx = prepared.transaction
    assert len(tx.signatures) == 2
    assert tx.message.account_keys[0] == payer.pubkey()
    assert tx.message.recent_blockhash == client.blockhash
    assert prepared.mint_address == mint.pubkey()


def test_build_failure_is_transaction_build_error(payer) -> None:
    service = SolanaService(FakeSolanaClient(blockhash_error=OSError("timeout")), payer)

    with pytest.raises(TransactionBuildError):
        asyncio.run(service.build_mint_transaction(Keypair()))


# Submission

def test_send_uses_preflight(payer) -> None:
    client = FakeSolanaClient()
    service = SolanaService(client, payer)
    prepared = asyncio.run(service.build_mint_transaction(Keypair()))

    signature = asyncio.run(service.send_transaction(prepared.transaction))

    raw, opts = client.sent[0]
    assert signature == str(Transaction.from_bytes(raw).signatures[0])
    assert opts.skip_preflight is False
    assert opts.preflight_commitment == "confirmed"


def test_send_failure_is_submission_error(payer) -> None:
    client = FakeSolanaClient(send_error=RuntimeError("Blockhash not found"))
    service = SolanaService(client, payer)
    prepared = asyncio.run(service.build_mint_transaction(Keypair()))

    with pytest.raises(SubmissionError, match="Blockhash not found"):
        asyncio.run(service.send_transaction(prepared.transaction))


# Confirmation polling

@pytest.mark.parametrize("pending", [0, 3, 29])
def test_confirms_after_pending_polls(payer, sleeps, pending) -> None:
    client = FakeSolanaClient(statuses=[None] * pending + ["confirmed"])
    service = SolanaService(client, payer)

    result = asyncio.run(service.confirm_transaction(_signature()))

    assert result.confirmation_status == "confirmed"
    assert result.attempts == pending + 1
    assert client.status_calls == pending + 1
    assert sleeps == [2.0] * pending


def test_times_out_after_thirty_attempts(payer, sleeps) -> None:
    client = FakeSolanaClient(statuses=[None] * 30 + ["confirmed"])
    service = SolanaService(client, payer)
    signature = _signature()

    with pytest.raises(ConfirmationTimeoutError) as exc_info:
        asyncio.run(service.confirm_transaction(signature))

    assert exc_info.value.attempts == 30
    assert exc_info.value.signature == signature
    assert client.status_calls == 30
    assert len(sleeps) == 29


def test_on_chain_error_stops_polling(payer, sleeps) -> None:
    client = FakeSolanaClient(statuses=[{"err": "InstructionError(0, Custom(1))"}, "confirmed"])
    service = SolanaService(client, payer)

    with pytest.raises(OnChainExecutionError, match="Transaction failed: InstructionError"):
        asyncio.run(service.confirm_transaction(_signature()))

    assert client.status_calls == 1
    assert sleeps == []


def test_transient_rpc_error_uses_an_attempt(payer, sleeps) -> None:
    client = FakeSolanaClient(statuses=[RuntimeError("429 Too Many Requests"), "confirmed"])
    service = SolanaService(client, payer)

    result = asyncio.run(service.confirm_transaction(_signature()))

    assert result.attempts == 2
    assert sleeps == [2.0]


def test_processed_is_still_pending(payer, sleeps) -> None:
    client = FakeSolanaClient(statuses=["processed", "finalized"])
    service = SolanaService(client, payer)

    result = asyncio.run(service.confirm_transaction(_signature()))

    assert result.confirmation_status == "finalized"
    assert result.attempts == 2
    assert result.to_dict() == {
        "confirmationStatus": "finalized",
        "slot": 42,
        "confirmations": None,
        "attempts": 2,
    }


def test_confirmation_states_come_from_the_rpc() -> None:
    states = {
        value for name, value in vars(TransactionStatus).items()
        if name.isupper() and isinstance(value, str)
    }

    assert states == {"pending", "confirmed", "finalized"}
    assert confirmation_state(None) == "pending"
    assert confirmation_state(CONFIRMATION_STATUSES["processed"]) == "pending"
    assert confirmation_state(CONFIRMATION_STATUSES["confirmed"]) == "confirmed"
    assert confirmation_state(CONFIRMATION_STATUSES["finalized"]) == "finalized"
