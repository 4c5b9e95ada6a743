"""
Transaction Operations

Mutating operations against the token and NFT contracts. Every submission is
awaited until confirmed before the next step runs, and balances are refreshed
explicitly afterwards rather than waiting for the event feed.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, NoReturn, Optional, Set

from .enums import TransactionKind
from .errors import TransactionFailure, TransactionInProgress, UserRejected, ValidationError, is_user_rejection
from .interfaces import NFTContract, TokenContract
from .loader import ContractDataLoader
from .models import TransactionResult
from .state import DappState
from .units import format_units, parse_units


logger = logging.getLogger(__name__)


class TransactionOrchestrator:
    """Runs token transfers and the approve-then-mint sequence"""

    def __init__(
        self,
        token: TokenContract,
        nft: NFTContract,
        loader: ContractDataLoader,
        state: DappState,
        guard_in_flight: bool = True,
    ):
        """
        Initialize transaction orchestrator

        Args:
            token: Fungible token contract
            nft: NFT contract, also the spender approved for the mint fee
            loader: Used for the post-confirmation balance refresh
            state: Shared session state
            guard_in_flight: Reject a second call of an operation while one is pending
        """
        self.token = token
        self.nft = nft
        self.loader = loader
        self.state = state
        self.guard_in_flight = guard_in_flight
        self._in_flight: Set[TransactionKind] = set()

    def is_pending(self, kind: TransactionKind) -> bool:
        return kind in self._in_flight

    async def transfer_tokens(self, to: Optional[str] = None, amount: Optional[str] = None) -> TransactionResult:
        """
        Transfer tokens from the connected account

        Args:
            to: Recipient address; defaults to the recipient input in the state
            amount: Decimal amount such as "50"; defaults to the amount input

        Returns:
            TransactionResult for the confirmed transfer

        Raises:
            ValidationError: If the account, recipient or amount is missing or invalid
            UserRejected: If the user declined the transaction
            TransactionFailure: If submission or confirmation failed
        """
        to = self.state.recipient if to is None else to
        amount = self.state.amount if amount is None else amount
        account = self.state.account

        if not account or not to or not str(to).strip() or not amount or not str(amount).strip():
            raise ValidationError("Please fill in all fields")
        try:
            value = parse_units(amount)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        with self._guard(TransactionKind.TRANSFER):
            try:
                tx = await self.token.transfer(to.strip(), value, sender=account)
                logger.info(f"Transfer of {amount} to {to} submitted: {tx.tx_hash}")
                await tx.wait()
            except Exception as e:
                self._raise_failure(e, "Failed to transfer tokens")

            logger.info(f"Transfer {tx.tx_hash} confirmed")
            await self.loader.refresh_balance(account)
            self.state.clear_transfer_inputs()

        return TransactionResult(kind=TransactionKind.TRANSFER, tx_hash=tx.tx_hash)

    async def mint_nft(self) -> TransactionResult:
        """
        Mint an NFT, approving the mint fee first when the allowance is short

        The approval is confirmed before mint() is submitted; mint is never
        attempted with an insufficient allowance.

        Returns:
            TransactionResult for the confirmed mint

        Raises:
            ValidationError: If no account is connected
            UserRejected: If the user declined a transaction
            TransactionFailure: If a read, submission or confirmation failed
        """
        account = self.state.account
        if not account:
            raise ValidationError("Please connect your wallet")

        with self._guard(TransactionKind.MINT):
            approve_hash = None
            try:
                fee = await self.nft.mint_fee()
                allowance = await self.token.allowance(account, self.nft.address)

                if allowance < fee:
                    logger.info(
                        f"Allowance {format_units(allowance)} below mint fee {format_units(fee)}, approving"
                    )
                    approve_tx = await self.token.approve(self.nft.address, fee, sender=account)
                    await approve_tx.wait()
                    approve_hash = approve_tx.tx_hash
                    logger.info(f"Approval {approve_hash} confirmed")

                mint_tx = await self.nft.mint(sender=account)
                logger.info(f"Mint submitted: {mint_tx.tx_hash}")
                await mint_tx.wait()
            except Exception as e:
                self._raise_failure(e, "Failed to mint NFT")

            logger.info(f"Mint {mint_tx.tx_hash} confirmed")
            await self.loader.refresh_balance(account)

        return TransactionResult(kind=TransactionKind.MINT, tx_hash=mint_tx.tx_hash, approve_tx_hash=approve_hash)

    @contextmanager
    def _guard(self, kind: TransactionKind) -> Iterator[None]:
        if self.guard_in_flight and kind in self._in_flight:
            raise TransactionInProgress(f"A {kind.value} is already waiting for confirmation")
        self._in_flight.add(kind)
        try:
            yield
        finally:
            self._in_flight.discard(kind)

    def _raise_failure(self, exc: Exception, message: str) -> NoReturn:
        if is_user_rejection(exc):
            logger.warning(f"{message}: rejected by user")
            raise UserRejected("Transaction was rejected") from exc
        logger.error(f"{message}: {exc}")
        raise TransactionFailure(message) from exc
