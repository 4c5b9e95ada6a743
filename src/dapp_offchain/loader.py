"""
Contract Data Loading

Read-only contract queries for the connected account. The token and NFT
reads run as two independent parallel batches; each batch is applied to the
state only when all of its calls succeed.
"""

import asyncio
import logging
from typing import Optional

from .errors import ReadFailure
from .interfaces import NFTContract, TokenContract
from .models import LoadResult, NFTSnapshot, TokenSnapshot
from .state import DappState
from .units import format_units


logger = logging.getLogger(__name__)


class ContractDataLoader:
    """Loads token and NFT display values into the session state"""

    def __init__(self, token: TokenContract, nft: NFTContract, state: DappState):
        self.token = token
        self.nft = nft
        self.state = state

    async def load(self, account: str) -> LoadResult:
        """
        Load token and NFT snapshots for an account

        A failing batch keeps the previously displayed values and is logged;
        nothing is raised to the caller.

        Args:
            account: Address whose token balance is read

        Returns:
            LoadResult telling which batches were applied
        """
        token_applied, nft_applied = await asyncio.gather(
            self._load_token(account),
            self._load_nft(),
        )
        return LoadResult(token_applied=token_applied, nft_applied=nft_applied)

    async def _load_token(self, account: str) -> bool:
        try:
            name, symbol, balance = await asyncio.gather(
                self.token.name(),
                self.token.symbol(),
                self.token.balance_of(account),
            )
        except Exception as e:
            failure = ReadFailure(f"Token batch failed for {account}: {e}")
            logger.error(f"Error loading token data, keeping previous values: {failure}")
            return False

        self.state.apply_token_snapshot(
            TokenSnapshot(name=name, symbol=symbol, balance=format_units(balance))
        )
        return True

    async def _load_nft(self) -> bool:
        try:
            name, symbol, fee = await asyncio.gather(
                self.nft.name(),
                self.nft.symbol(),
                self.nft.mint_fee(),
            )
        except Exception as e:
            failure = ReadFailure(f"NFT batch failed: {e}")
            logger.error(f"Error loading NFT data, keeping previous values: {failure}")
            return False

        self.state.apply_nft_snapshot(NFTSnapshot(name=name, symbol=symbol, mint_fee=format_units(fee)))
        return True

    async def refresh_balance(self, account: str) -> Optional[str]:
        """
        Re-read the token balance after a confirmed transaction

        Returns:
            The new balance string, or None if the read failed (stale value kept)
        """
        try:
            raw = await self.token.balance_of(account)
        except Exception as e:
            logger.error(f"Error refreshing balance for {account}, keeping previous value: {e}")
            return None

        balance = format_units(raw)
        self.state.update_balance(balance)
        return balance

    async def owner_of(self, token_id: int) -> str:
        """Get the current owner of an NFT"""
        try:
            return await self.nft.owner_of(int(token_id))
        except Exception as e:
            raise ReadFailure(f"Could not read owner of token #{token_id}: {e}") from e
