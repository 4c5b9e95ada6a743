"""
Collaborator Interfaces

Structural types for the wallet provider and the two contracts the engine
consumes. The web3 adapters in chain_context implement them; tests use
in-memory fakes.
"""

from typing import Any, Awaitable, Callable, Protocol

from .models import EventNotification, NetworkInfo


EventListener = Callable[[EventNotification], Awaitable[None]]


class PendingTransaction(Protocol):
    """Handle for a submitted mutating call"""

    tx_hash: str

    async def wait(self) -> Any:
        """Suspend until one confirmation; raise TransactionFailure on revert."""
        ...


class Signer(Protocol):
    async def get_address(self) -> str: ...


class WalletProvider(Protocol):
    async def request_accounts(self) -> list[str]: ...

    async def get_signer(self) -> Signer: ...

    async def get_network(self) -> NetworkInfo: ...

    def on(self, channel: str, listener: Callable[..., Awaitable[None]]) -> None: ...

    def off(self, channel: str, listener: Callable[..., Awaitable[None]]) -> None: ...


class TokenContract(Protocol):
    address: str

    async def name(self) -> str: ...

    async def symbol(self) -> str: ...

    async def balance_of(self, owner: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def transfer(self, to: str, amount: int, sender: str) -> PendingTransaction: ...

    async def approve(self, spender: str, amount: int, sender: str) -> PendingTransaction: ...

    def on(self, event_name: str, listener: EventListener) -> None: ...

    def off(self, event_name: str, listener: EventListener) -> None: ...


class NFTContract(Protocol):
    address: str

    async def name(self) -> str: ...

    async def symbol(self) -> str: ...

    async def mint_fee(self) -> int: ...

    async def token_uri(self, token_id: int) -> str: ...

    async def owner_of(self, token_id: int) -> str: ...

    async def mint(self, sender: str) -> PendingTransaction: ...

    def on(self, event_name: str, listener: EventListener) -> None: ...

    def off(self, event_name: str, listener: EventListener) -> None: ...
