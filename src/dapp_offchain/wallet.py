"""
Wallet Session

Owns wallet identity for the session: connects through the wallet provider,
reacts to account and chain change notifications and triggers contract data
reloads on the transitions that need them.
"""

import logging
from typing import List, Optional

from .enums import ProviderChannel, SessionStatus
from .errors import DappError, ProviderError, ProviderUnavailable, UserRejected, is_user_rejection
from .interfaces import WalletProvider
from .loader import ContractDataLoader
from .models import ConnectResult, NetworkInfo
from .state import DappState
from .units import normalize_address, same_address


logger = logging.getLogger(__name__)


class WalletSession:
    """Manages the Disconnected -> Connecting -> Connected session lifecycle"""

    def __init__(
        self,
        provider: Optional[WalletProvider],
        loader: ContractDataLoader,
        state: DappState,
        expected_chain_id: Optional[int] = None,
    ):
        """
        Initialize wallet session

        Args:
            provider: Detected wallet provider, None if no provider is available
            loader: Loader triggered on identity transitions
            state: Shared session state
            expected_chain_id: Chain the contracts live on; other chains log a warning
        """
        self.provider = provider
        self.loader = loader
        self.state = state
        self.expected_chain_id = expected_chain_id
        self._listening = False
        self._pending_account: Optional[str] = None

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    async def connect(self) -> ConnectResult:
        """
        Request account access and resolve the session identity

        Returns:
            ConnectResult with the connected account and network

        Raises:
            ProviderUnavailable: If no wallet provider was detected
            UserRejected: If the user declined the request
            ProviderError: For any other provider failure
        """
        if self.provider is None:
            raise ProviderUnavailable("No wallet provider detected")

        self.state.begin_connect()
        try:
            await self.provider.request_accounts()
            signer = await self.provider.get_signer()
            account = normalize_address(await signer.get_address())
            network = await self.provider.get_network()
        except Exception as e:
            self.state.disconnect()
            if is_user_rejection(e):
                raise UserRejected("Connection request was rejected") from e
            if isinstance(e, DappError):
                raise
            logger.error(f"Error connecting wallet: {e}")
            raise ProviderError(f"Failed to connect wallet: {e}") from e

        self.state.set_identity(account, network)
        self._warn_if_unexpected(network)
        self._start_listening()

        await self.loader.load(account)
        return ConnectResult(account=account, network=network)

    async def on_accounts_changed(self, accounts: List[str]) -> None:
        """
        Handle an accountsChanged notification

        An empty list always disconnects. A different first account replaces
        the identity and reloads; the same account is a no-op.
        """
        if not accounts:
            self.disconnect()
            return

        if self.state.status == SessionStatus.DISCONNECTED:
            logger.debug("Ignoring accountsChanged while disconnected")
            return

        target = normalize_address(accounts[0])
        if same_address(target, self.state.account):
            logger.debug(f"Account unchanged ({target}), skipping reload")
            return
        if same_address(target, self._pending_account):
            logger.debug(f"Switch to {target} already in progress, skipping reload")
            return

        # must be set before the first await
        self._pending_account = target
        try:
            signer = await self.provider.get_signer()
            account = normalize_address(await signer.get_address())
            self.state.set_account(account)
        finally:
            if self._pending_account == target:
                self._pending_account = None

        await self.loader.load(account)

    async def on_chain_changed(self, *_args) -> None:
        """Handle a chainChanged notification: re-read network, reload if connected"""
        network = await self.refresh_network()
        account = self.state.account
        if account:
            logger.info(f"Network changed to {network.name} ({network.chain_id}), reloading data")
            await self.loader.load(account)

    async def refresh_network(self) -> NetworkInfo:
        """Read network identity from the provider and store it"""
        if self.provider is None:
            raise ProviderUnavailable("No wallet provider detected")

        network = await self.provider.get_network()
        self.state.set_network(network)
        self._warn_if_unexpected(network)
        return network

    def disconnect(self) -> None:
        """Drop to Disconnected and detach provider listeners"""
        self._stop_listening()
        self._pending_account = None
        self.state.disconnect()

    def _warn_if_unexpected(self, network: NetworkInfo) -> None:
        if self.expected_chain_id is not None and not network.is_expected(self.expected_chain_id):
            logger.warning(
                f"Connected to {network.name} (chain {network.chain_id}), "
                f"expected chain {self.expected_chain_id}"
            )

    def _start_listening(self) -> None:
        if self._listening:
            return
        self.provider.on(ProviderChannel.ACCOUNTS_CHANGED.value, self.on_accounts_changed)
        self.provider.on(ProviderChannel.CHAIN_CHANGED.value, self.on_chain_changed)
        self._listening = True

    def _stop_listening(self) -> None:
        if not self._listening:
            return
        self.provider.off(ProviderChannel.ACCOUNTS_CHANGED.value, self.on_accounts_changed)
        self.provider.off(ProviderChannel.CHAIN_CHANGED.value, self.on_chain_changed)
        self._listening = False
