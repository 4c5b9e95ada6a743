"""
EVM Chain Context Management

Network configuration and blockchain connection setup over web3's AsyncWeb3.
Builds the wallet provider and the contract adapters the engine consumes.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3

from .abi import NFT_ABI, TOKEN_ABI, load_artifact_abi
from .config import Settings
from .contracts import Web3NFTContract, Web3TokenContract
from .enums import ProviderChannel
from .errors import ProviderError, UserRejected, USER_REJECTED_CODE
from .models import NetworkInfo


logger = logging.getLogger(__name__)


class Web3Signer:
    """Signer backed by the node's first managed account"""

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    async def get_address(self) -> str:
        accounts = await self.w3.eth.accounts
        if not accounts:
            raise ProviderError("Provider exposes no accounts")
        return accounts[0]


class Web3WalletProvider:
    """
    Wallet provider over a JSON-RPC node

    accountsChanged and chainChanged are produced by polling eth_accounts and
    eth_chainId while at least one listener is attached.
    """

    def __init__(self, w3: AsyncWeb3, poll_interval: float = 1.0):
        self.w3 = w3
        self.poll_interval = poll_interval
        self._listeners: Dict[str, List[Callable[..., Awaitable[None]]]] = {}
        self._task: Optional[asyncio.Task] = None

    async def request_accounts(self) -> List[str]:
        """
        Ask the provider for account access (eth_requestAccounts)

        Raises:
            UserRejected: If the provider answered with error code 4001
            ProviderError: For any other JSON-RPC error
        """
        response = await self.w3.provider.make_request("eth_requestAccounts", [])
        error = response.get("error")
        if error:
            if isinstance(error, dict) and error.get("code") == USER_REJECTED_CODE:
                raise UserRejected(error.get("message", "User rejected the request"))
            raise ProviderError(f"eth_requestAccounts failed: {error}")
        return list(response.get("result") or [])

    async def get_signer(self) -> Web3Signer:
        return Web3Signer(self.w3)

    async def get_network(self) -> NetworkInfo:
        chain_id = await self.w3.eth.chain_id
        return NetworkInfo.from_chain_id(chain_id)

    def on(self, channel: str, listener: Callable[..., Awaitable[None]]) -> None:
        self._listeners.setdefault(channel, []).append(listener)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._watch())

    def off(self, channel: str, listener: Callable[..., Awaitable[None]]) -> None:
        listeners = self._listeners.get(channel, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(channel, None)
        if not self._listeners and self._task is not None:
            self._task.cancel()
            self._task = None

    async def close(self) -> None:
        self._listeners.clear()
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _snapshot(self) -> tuple:
        accounts = list(await self.w3.eth.accounts)
        chain_id = await self.w3.eth.chain_id
        return accounts, chain_id

    async def _watch(self) -> None:
        accounts, chain_id = None, None
        while True:
            try:
                current_accounts, current_chain_id = await self._snapshot()
            except Exception as e:
                logger.warning(f"Error polling wallet provider: {e}")
                await asyncio.sleep(self.poll_interval)
                continue

            if accounts is not None:
                if current_chain_id != chain_id:
                    await self._emit(ProviderChannel.CHAIN_CHANGED.value)
                if [a.lower() for a in current_accounts] != [a.lower() for a in accounts]:
                    await self._emit(ProviderChannel.ACCOUNTS_CHANGED.value, current_accounts)

            accounts, chain_id = current_accounts, current_chain_id
            await asyncio.sleep(self.poll_interval)

    async def _emit(self, channel: str, *args: Any) -> None:
        for listener in list(self._listeners.get(channel, [])):
            try:
                await listener(*args)
            except Exception:
                logger.exception(f"{channel} listener failed")


class EvmChainContext:
    """Manages the web3 connection and contract adapters"""

    def __init__(self, settings: Settings, w3: Optional[AsyncWeb3] = None):
        """
        Initialize chain context

        Args:
            settings: Engine settings (RPC URL, contract addresses, ABIs, intervals)
            w3: Preconfigured AsyncWeb3 instance; built from settings.rpc_url if omitted
        """
        self.settings = settings
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))

        self.token_abi = load_artifact_abi(settings.token_abi_path) if settings.token_abi_path else TOKEN_ABI
        self.nft_abi = load_artifact_abi(settings.nft_abi_path) if settings.nft_abi_path else NFT_ABI

        self._provider: Optional[Web3WalletProvider] = None
        self._token: Optional[Web3TokenContract] = None
        self._nft: Optional[Web3NFTContract] = None

    async def detect_provider(self) -> Optional[Web3WalletProvider]:
        """
        Get the wallet provider if the node is reachable

        Returns:
            Web3WalletProvider, or None when no provider is available
        """
        try:
            connected = await self.w3.is_connected()
        except Exception as e:
            logger.warning(f"Error probing provider at {self.settings.rpc_url}: {e}")
            connected = False

        if not connected:
            logger.warning(f"No provider reachable at {self.settings.rpc_url}")
            return None

        if self._provider is None:
            self._provider = Web3WalletProvider(self.w3, poll_interval=self.settings.provider_poll_interval)
        return self._provider

    def get_token_contract(self) -> Web3TokenContract:
        if self._token is None:
            self._token = Web3TokenContract(
                self.w3,
                self.settings.token_address,
                self.token_abi,
                poll_interval=self.settings.event_poll_interval,
                confirmation_timeout=self.settings.confirmation_timeout,
            )
        return self._token

    def get_nft_contract(self) -> Web3NFTContract:
        if self._nft is None:
            self._nft = Web3NFTContract(
                self.w3,
                self.settings.nft_address,
                self.nft_abi,
                poll_interval=self.settings.event_poll_interval,
                confirmation_timeout=self.settings.confirmation_timeout,
            )
        return self._nft

    def get_network_info(self) -> dict:
        """
        Get network configuration information

        Returns:
            Dictionary containing network information
        """
        return {
            "rpc_url": self.settings.rpc_url,
            "expected_chain_id": self.settings.expected_chain_id,
            "token_address": self.settings.token_address,
            "nft_address": self.settings.nft_address,
            "explorer_url": self.settings.explorer_url,
        }

    def get_explorer_url(self, tx_hash: str) -> str:
        """Get explorer URL for a transaction, empty when no explorer is configured"""
        if not self.settings.explorer_url:
            return ""
        return f"{self.settings.explorer_url.rstrip('/')}/tx/{tx_hash}"

    async def close(self) -> None:
        """Stop all polling tasks"""
        if self._provider is not None:
            await self._provider.close()
        for contract in (self._token, self._nft):
            if contract is not None:
                await contract.close()
