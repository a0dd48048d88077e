"""
Solana RPC operations: prerequisites, mint transaction building,
submission and confirmation polling
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import List
from urllib.parse import quote

from solana.constants import LAMPORTS_PER_SOL
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import create_account, CreateAccountParams
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus
from spl.token.constants import MINT_LEN, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    initialize_mint,
    InitializeMintParams,
    create_associated_token_account,
    get_associated_token_address,
    mint_to,
    MintToParams,
)

from ..errors import (
    ConfigurationError,
    InsufficientFundsError,
    NetworkUnavailableError,
    TransactionBuildError,
    SubmissionError,
    ConfirmationTimeoutError,
    OnChainExecutionError,
)
from ..models import ConfirmationResult, TransactionStatus


MIN_BALANCE_SOL = 0.01
MIN_BALANCE_LAMPORTS = int(MIN_BALANCE_SOL * LAMPORTS_PER_SOL)
MAX_CONFIRMATION_RETRIES = 30
CONFIRMATION_INTERVAL = 2.0
NFT_DECIMALS = 0
NFT_AMOUNT = 1


def load_keypair(path: str) -> Keypair:
    """Load a keypair from a solana-keygen JSON file (array of 64 ints)"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            secret = json.load(f)
        return Keypair.from_bytes(bytes(secret))
    except (OSError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Failed to load keypair from {path}: {e}") from e


def explorer_link(kind: str, value: str, rpc_url: str) -> str:
    """Solana Explorer link for a tx or address on a custom RPC cluster"""
    encoded_rpc = quote(rpc_url, safe="!~*'()")
    return f"https://explorer.solana.com/{kind}/{value}?cluster=custom&customUrl={encoded_rpc}"


def parse_mint_account(data: bytes) -> dict:
    """Decode supply, decimals and authority flags from SPL mint account data"""
    if len(data) < MINT_LEN:
        raise ValueError(f"Mint account data too short: {len(data)} bytes")
    return {
        'mint_authority_present': int.from_bytes(data[0:4], 'little') == 1,
        'supply': int.from_bytes(data[36:44], 'little'),
        'decimals': data[44],
        'is_initialized': data[45] == 1,
        'freeze_authority_present': int.from_bytes(data[46:50], 'little') == 1,
    }


def confirmation_state(value) -> str:
    """Normalize an RPC confirmation status into a TransactionStatus value"""
    if value is None:
        return TransactionStatus.PENDING
    if value == TransactionConfirmationStatus.Finalized:
        return TransactionStatus.FINALIZED
    if value == TransactionConfirmationStatus.Confirmed:
        return TransactionStatus.CONFIRMED
    name = str(value).rsplit('.', 1)[-1].lower()
    if name in TransactionStatus.TERMINAL_SUCCESS:
        return name
    return TransactionStatus.PENDING


def compose_mint_instructions(payer: Pubkey, mint: Pubkey, token_account: Pubkey,
                              rent_lamports: int) -> List[Instruction]:
    """The four NFT mint instructions, in execution order"""
    return [
        # 1. Mint account owned by the token program
        create_account(CreateAccountParams(
            from_pubkey=payer,
            to_pubkey=mint,
            lamports=rent_lamports,
            space=MINT_LEN,
            owner=TOKEN_PROGRAM_ID,
        )),
        # 2. Zero decimals makes the token non-fungible
        initialize_mint(InitializeMintParams(
            decimals=NFT_DECIMALS,
            program_id=TOKEN_PROGRAM_ID,
            mint=mint,
            mint_authority=payer,
            freeze_authority=payer,
        )),
        # 3. Holding account derived from (owner, mint)
        create_associated_token_account(payer, payer, mint),
        # 4. Supply of exactly one
        mint_to(MintToParams(
            program_id=TOKEN_PROGRAM_ID,
            mint=mint,
            dest=token_account,
            mint_authority=payer,
            amount=NFT_AMOUNT,
        )),
    ]


@dataclass
class PreparedMint:
    """A signed mint transaction ready for submission"""
    transaction: Transaction
    mint_address: Pubkey
    token_account: Pubkey
    blockhash: Hash
    rent_lamports: int
    instructions: List[Instruction]


class SolanaService:
    """Wraps the RPC client for the steps of an NFT mint"""

    def __init__(self, client: AsyncClient, payer: Keypair, commitment: str = 'confirmed',
                 max_retries: int = MAX_CONFIRMATION_RETRIES,
                 poll_interval: float = CONFIRMATION_INTERVAL):
        self.client = client
        self.payer = payer
        self.commitment = commitment
        self.max_retries = max_retries
        self.poll_interval = poll_interval
        self.logger = logging.getLogger('nft_deployer')

    @classmethod
    def connect(cls, rpc_url: str, payer: Keypair, commitment: str = 'confirmed', **kwargs) -> "SolanaService":
        """Create a service with an HTTP-only async client"""
        client = AsyncClient(rpc_url, commitment=Commitment(commitment), timeout=60)
        return cls(client, payer, commitment=commitment, **kwargs)

    async def close(self):
        await self.client.close()

    async def get_balance_lamports(self) -> int:
        resp = await self.client.get_balance(self.payer.pubkey())
        return resp.value

    async def get_balance_sol(self) -> float:
        """Get current payer balance in SOL"""
        return await self.get_balance_lamports() / LAMPORTS_PER_SOL

    async def check_prerequisites(self) -> float:
        """Require a minimum balance and a live RPC endpoint; returns balance in SOL"""
        print("🔍 Checking deployment prerequisites...")

        try:
            lamports = await self.get_balance_lamports()
        except Exception as e:
            raise NetworkUnavailableError(f"Failed to fetch wallet balance: {e}") from e

        balance_sol = lamports / LAMPORTS_PER_SOL
        print(f"💰 Wallet balance: {balance_sol} SOL")
        if lamports < MIN_BALANCE_LAMPORTS:
            raise InsufficientFundsError(balance_sol, MIN_BALANCE_SOL)

        try:
            await self.client.get_latest_blockhash()
        except Exception as e:
            raise NetworkUnavailableError(f"Network connectivity failed: {e}") from e
        print("✅ Network connectivity verified")

        print("✅ Prerequisites check passed")
        return balance_sol

    async def build_mint_transaction(self, mint_keypair: Keypair) -> PreparedMint:
        """Fetch blockhash and rent, compose the four instructions and sign"""
        payer = self.payer.pubkey()
        mint = mint_keypair.pubkey()
        token_account = get_associated_token_address(payer, mint)
        print(f"🏦 Token account: {token_account}")

        try:
            blockhash = (await self.client.get_latest_blockhash()).value.blockhash
            rent_lamports = (await self.client.get_minimum_balance_for_rent_exemption(MINT_LEN)).value
        except Exception as e:
            raise TransactionBuildError(f"Failed to fetch blockhash or rent: {e}") from e
        print(f"💸 Mint rent: {rent_lamports / LAMPORTS_PER_SOL} SOL")

        print("🔨 Building transaction...")
        try:
            instructions = compose_mint_instructions(payer, mint, token_account, rent_lamports)
            message = Message(instructions, payer)
            # The new mint account must co-sign its own creation
            transaction = Transaction([self.payer, mint_keypair], message, blockhash)
        except Exception as e:
            raise TransactionBuildError(f"Failed to build mint transaction: {e}") from e
        print("✍️ Transaction signed")

        return PreparedMint(
            transaction=transaction,
            mint_address=mint,
            token_account=token_account,
            blockhash=blockhash,
            rent_lamports=rent_lamports,
            instructions=instructions,
        )

    async def send_transaction(self, transaction: Transaction) -> str:
        """Submit with preflight enabled and return the signature"""
        print("📤 Sending transaction...")
        opts = TxOpts(skip_preflight=False, preflight_commitment=Commitment(self.commitment))
        try:
            resp = await self.client.send_raw_transaction(bytes(transaction), opts=opts)
        except Exception as e:
            raise SubmissionError(f"Failed to send transaction: {e}") from e

        signature = str(resp.value)
        print(f"📝 Transaction signature: {signature}")
        return signature

    async def confirm_transaction(self, signature: str) -> ConfirmationResult:
        """Poll signature status until confirmed, failed or out of attempts"""
        print("⏳ Confirming transaction...")
        sig = Signature.from_string(signature)

        for attempt in range(1, self.max_retries + 1):
            status = None
            try:
                resp = await self.client.get_signature_statuses([sig])
                status = resp.value[0] if resp.value else None
            except Exception as e:
                # Transient RPC errors use up an attempt but do not abort polling
                self.logger.warning(f"Confirmation attempt {attempt}/{self.max_retries} failed: {e}")

            if status is not None:
                if status.err is not None:
                    raise OnChainExecutionError(signature, str(status.err))

                state = confirmation_state(status.confirmation_status)
                if state in TransactionStatus.TERMINAL_SUCCESS:
                    print(f"✅ Transaction confirmed ({state})")
                    return ConfirmationResult(
                        signature=signature,
                        confirmation_status=state,
                        attempts=attempt,
                        slot=getattr(status, 'slot', None),
                        confirmations=getattr(status, 'confirmations', None),
                    )

            if attempt < self.max_retries:
                print(f"⏳ Waiting {self.poll_interval:g}s before retry... ({attempt}/{self.max_retries})")
                await asyncio.sleep(self.poll_interval)

        raise ConfirmationTimeoutError(signature, self.max_retries)
