"""
dApp Runtime

The owning scope for one front-end session: builds the shared state and all
engine components from settings, starts the event subscriptions and tears
everything down again.
"""

import logging
from typing import Optional

from .chain_context import EvmChainContext
from .config import Settings
from .events import EventReconciler
from .interfaces import NFTContract, TokenContract, WalletProvider
from .loader import ContractDataLoader
from .state import DappState
from .transactions import TransactionOrchestrator
from .wallet import WalletSession


logger = logging.getLogger(__name__)


class DappRuntime:
    """Wires state, loader, session, reconciler and orchestrator together"""

    def __init__(
        self,
        provider: Optional[WalletProvider],
        token: TokenContract,
        nft: NFTContract,
        settings: Settings,
        chain_context: Optional[EvmChainContext] = None,
    ):
        self.settings = settings
        self.chain_context = chain_context
        self.provider = provider
        self.token = token
        self.nft = nft

        self.state = DappState(event_log_limit=settings.event_log_limit)
        self.loader = ContractDataLoader(token, nft, self.state)
        self.session = WalletSession(provider, self.loader, self.state, expected_chain_id=settings.expected_chain_id)
        self.reconciler = EventReconciler(token, nft, self.state)
        self.orchestrator = TransactionOrchestrator(
            token, nft, self.loader, self.state, guard_in_flight=settings.guard_in_flight
        )

    @classmethod
    async def from_settings(cls, settings: Settings) -> "DappRuntime":
        """Build a runtime backed by web3 adapters"""
        chain_context = EvmChainContext(settings)
        provider = await chain_context.detect_provider()
        return cls(
            provider,
            chain_context.get_token_contract(),
            chain_context.get_nft_contract(),
            settings,
            chain_context=chain_context,
        )

    async def start(self) -> None:
        """Subscribe to contract events and read the current network"""
        self.reconciler.subscribe()
        if self.provider is not None:
            try:
                await self.session.refresh_network()
            except Exception as e:
                logger.error(f"Error reading network: {e}")

    async def close(self) -> None:
        """Detach every listener and stop polling"""
        self.reconciler.unsubscribe()
        self.session.disconnect()
        if self.chain_context is not None:
            await self.chain_context.close()
