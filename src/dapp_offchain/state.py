"""
Session State

Single owner of everything the front-end displays: wallet identity, network,
contract snapshots, the event log, the last mint and the transfer form
inputs. Components mutate it only through the methods below; concurrent
writers follow last-writer-wins.
"""

import logging
from collections import deque
from typing import List, Optional

from .enums import SessionStatus
from .models import DomainEvent, MintRecord, NetworkInfo, NFTMintEvent, NFTSnapshot, TokenSnapshot


logger = logging.getLogger(__name__)


class DappState:
    """Session-scoped state with controlled mutation entry points"""

    def __init__(self, event_log_limit: int = 100):
        """
        Initialize an empty, disconnected state

        Args:
            event_log_limit: Maximum number of events kept in the log
        """
        if event_log_limit < 1:
            raise ValueError("event_log_limit must be at least 1")

        self._status = SessionStatus.DISCONNECTED
        self._account: Optional[str] = None
        self._network: Optional[NetworkInfo] = None
        self._token = TokenSnapshot()
        self._nft = NFTSnapshot()
        self._events: deque = deque(maxlen=event_log_limit)
        self._last_mint: Optional[MintRecord] = None
        self._recipient = ""
        self._amount = ""

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def account(self) -> Optional[str]:
        return self._account

    @property
    def network(self) -> Optional[NetworkInfo]:
        return self._network

    @property
    def token(self) -> TokenSnapshot:
        return self._token

    @property
    def nft(self) -> NFTSnapshot:
        return self._nft

    @property
    def events(self) -> List[DomainEvent]:
        """Event log, most recent first"""
        return list(self._events)

    @property
    def event_log_limit(self) -> int:
        return self._events.maxlen

    @property
    def last_mint(self) -> Optional[MintRecord]:
        return self._last_mint

    @property
    def recipient(self) -> str:
        return self._recipient

    @property
    def amount(self) -> str:
        return self._amount

    @property
    def is_connected(self) -> bool:
        return self._status == SessionStatus.CONNECTED and bool(self._account)

    # ------------------------------------------------------------------
    # Session identity
    # ------------------------------------------------------------------

    def begin_connect(self) -> None:
        self._status = SessionStatus.CONNECTING

    def set_identity(self, account: str, network: NetworkInfo) -> None:
        """Replace account and network and mark the session connected"""
        self._account = account
        self._network = network
        self._status = SessionStatus.CONNECTED
        logger.info(f"Session connected: {account} on {network.name} ({network.chain_id})")

    def set_account(self, account: str) -> None:
        """Replace the account wholesale after an account switch"""
        self._account = account
        self._status = SessionStatus.CONNECTED
        logger.info(f"Account changed: {account}")

    def set_network(self, network: NetworkInfo) -> None:
        self._network = network

    def disconnect(self) -> None:
        """Drop to Disconnected and discard session entities"""
        self._status = SessionStatus.DISCONNECTED
        self._account = None
        self._token = TokenSnapshot()
        self._nft = NFTSnapshot()
        self._last_mint = None
        self._recipient = ""
        self._amount = ""
        logger.info("Session disconnected")

    # ------------------------------------------------------------------
    # Contract snapshots
    # ------------------------------------------------------------------

    def apply_token_snapshot(self, snapshot: TokenSnapshot) -> None:
        self._token = snapshot

    def apply_nft_snapshot(self, snapshot: NFTSnapshot) -> None:
        self._nft = snapshot

    def update_balance(self, balance: str) -> None:
        self._token = self._token.model_copy(update={"balance": balance})

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def prepend_event(self, event: DomainEvent) -> None:
        """Insert at the front; the oldest entry is evicted once the log is full"""
        self._events.appendleft(event)
        if isinstance(event, NFTMintEvent):
            self._last_mint = MintRecord(token_id=event.token_id, token_uri=event.token_uri)

    def attach_token_uri(self, event: NFTMintEvent, token_uri: str) -> None:
        """Fill in enrichment metadata for a logged mint event"""
        event.token_uri = token_uri
        if self._last_mint is not None and self._last_mint.token_id == event.token_id:
            self._last_mint = MintRecord(token_id=event.token_id, token_uri=token_uri)

    def clear_events(self) -> None:
        self._events.clear()

    # ------------------------------------------------------------------
    # Transfer form inputs
    # ------------------------------------------------------------------

    def set_transfer_inputs(self, recipient: str, amount: str) -> None:
        self._recipient = recipient
        self._amount = amount

    def clear_transfer_inputs(self) -> None:
        self._recipient = ""
        self._amount = ""
