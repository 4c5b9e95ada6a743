"""
Event Reconciliation

Subscribes to the token and NFT contract event streams, drops redelivered
notifications and keeps a normalized, most-recent-first event log in the
session state. Mint events are enriched with their token URI.

Deduplication scope is exactly one subscription: the identity set is created
by subscribe() and discarded by unsubscribe().
"""

import itertools
import logging
from typing import Any, Optional, Set

from .enums import ContractEvent, EventCategory
from .errors import EnrichmentFailure
from .interfaces import NFTContract, TokenContract
from .models import EventNotification, NFTMintEvent, NFTTransferEvent, TokenTransferEvent
from .state import DappState
from .units import format_units, normalize_address


logger = logging.getLogger(__name__)


def event_identity(category: EventCategory, transaction_hash: Optional[str], secondary_id: Any) -> str:
    """
    Build the deduplication key for a notification

    Returns:
        "{category}_{txHash}_{secondaryId}", e.g. "mint_0xabc_7"
    """
    return f"{category.value}_{transaction_hash or ''}_{secondary_id}"


def _id_text(token_id: Any) -> str:
    return "" if token_id is None else str(token_id)


class EventReconciler:
    """Turns raw contract notifications into a deduplicated domain event log"""

    def __init__(self, token: TokenContract, nft: NFTContract, state: DappState):
        self.token = token
        self.nft = nft
        self.state = state

        self._seen: Optional[Set[str]] = None
        self._fallback_ids = itertools.count(1)

    @property
    def subscribed(self) -> bool:
        return self._seen is not None

    @property
    def seen_count(self) -> int:
        return len(self._seen) if self._seen is not None else 0

    def subscribe(self) -> None:
        """Attach the three event listeners with a fresh identity set"""
        if self.subscribed:
            self.unsubscribe()

        self._seen = set()
        self.token.on(ContractEvent.TOKENS_TRANSFERRED.value, self.handle_token_transfer)
        self.nft.on(ContractEvent.NFT_MINTED.value, self.handle_nft_minted)
        self.nft.on(ContractEvent.NFT_TRANSFERRED.value, self.handle_nft_transferred)
        logger.info("Subscribed to token and NFT events")

    def unsubscribe(self) -> None:
        """Detach all three listeners and discard the identity set"""
        if not self.subscribed:
            return

        self.token.off(ContractEvent.TOKENS_TRANSFERRED.value, self.handle_token_transfer)
        self.nft.off(ContractEvent.NFT_MINTED.value, self.handle_nft_minted)
        self.nft.off(ContractEvent.NFT_TRANSFERRED.value, self.handle_nft_transferred)
        self._seen = None
        logger.info("Unsubscribed from token and NFT events")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_token_transfer(self, notification: EventNotification) -> None:
        args = notification.args
        key = event_identity(EventCategory.TOKEN, notification.transaction_hash, self._secondary(notification.log_index))
        if not self._remember(key):
            return

        self.state.prepend_event(
            TokenTransferEvent(
                from_address=normalize_address(args.get("from")),
                to_address=normalize_address(args.get("to")),
                amount=format_units(args.get("amount") or 0),
            )
        )

    async def handle_nft_minted(self, notification: EventNotification) -> None:
        args = notification.args
        token_id = args.get("tokenId")
        key = event_identity(EventCategory.MINT, notification.transaction_hash, self._secondary(token_id))
        if not self._remember(key):
            return

        event = NFTMintEvent(owner=normalize_address(args.get("owner")), token_id=_id_text(token_id))
        self.state.prepend_event(event)

        if token_id is None:
            return
        try:
            token_uri = await self.nft.token_uri(int(token_id))
        except Exception as e:
            failure = EnrichmentFailure(f"tokenURI({token_id}) failed: {e}")
            logger.error(f"Error fetching token URI, leaving it empty: {failure}")
            return

        self.state.attach_token_uri(event, token_uri)

    async def handle_nft_transferred(self, notification: EventNotification) -> None:
        args = notification.args
        token_id = args.get("tokenId")
        key = event_identity(EventCategory.TRANSFER, notification.transaction_hash, self._secondary(token_id))
        if not self._remember(key):
            return

        self.state.prepend_event(
            NFTTransferEvent(
                from_address=normalize_address(args.get("from")),
                to_address=normalize_address(args.get("to")),
                token_id=_id_text(token_id),
            )
        )

    # ------------------------------------------------------------------
    # Identity bookkeeping
    # ------------------------------------------------------------------

    def _secondary(self, value: Any) -> Any:
        # 0 is a valid log index; only a missing value gets a local id
        if value is None:
            return f"local{next(self._fallback_ids)}"
        return value

    def _remember(self, key: str) -> bool:
        if self._seen is None:
            logger.debug(f"Ignoring {key}: not subscribed")
            return False
        if key in self._seen:
            logger.debug(f"Dropping duplicate event {key}")
            return False
        self._seen.add(key)
        return True
