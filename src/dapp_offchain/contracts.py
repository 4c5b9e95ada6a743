"""
Web3 Contract Adapters

Token and NFT contract access over web3's AsyncWeb3. Reads go through
functions.X().call(), mutations through transact() signed by the node's
account, and event streams are delivered by polling eth_getLogs over new
block ranges.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from web3 import AsyncWeb3, Web3

from .errors import TransactionFailure
from .interfaces import EventListener
from .models import EventNotification
from .units import to_hex_string


logger = logging.getLogger(__name__)


class Web3PendingTransaction:
    """Handle for a submitted transaction; wait() suspends until it is mined"""

    def __init__(self, w3: AsyncWeb3, tx_hash: Any, timeout: Optional[float] = None, poll_latency: float = 0.5):
        self.w3 = w3
        self._raw_hash = tx_hash
        self.tx_hash = to_hex_string(tx_hash)
        self.timeout = timeout
        self.poll_latency = poll_latency

    async def wait(self) -> Any:
        """
        Wait for one confirmation

        Returns:
            The transaction receipt

        Raises:
            TransactionFailure: If the transaction was mined but reverted
        """
        receipt = await self.w3.eth.wait_for_transaction_receipt(
            self._raw_hash, timeout=self.timeout, poll_latency=self.poll_latency
        )
        if receipt.get("status") == 0:
            raise TransactionFailure(f"Transaction {self.tx_hash} reverted")
        return receipt


class ContractEventPoller:
    """
    Delivers contract events to listeners by polling new block ranges

    Polling starts with the first listener and stops when the last one is
    removed. Only events from blocks after the start are delivered. A failed
    range is retried on the next tick, so listeners may see redeliveries.
    """

    def __init__(self, w3: AsyncWeb3, contract: Any, poll_interval: float = 2.0):
        self.w3 = w3
        self.contract = contract
        self.poll_interval = poll_interval
        self._listeners: Dict[str, List[EventListener]] = {}
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on(self, event_name: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_name, []).append(listener)
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def off(self, event_name: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(event_name, None)
        if not self._listeners:
            self._stop()

    async def close(self) -> None:
        self._listeners.clear()
        task = self._task
        self._stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        from_block = (await self.w3.eth.block_number) + 1

        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                latest = await self.w3.eth.block_number
            except Exception as e:
                logger.warning(f"Error reading block number, retrying: {e}")
                continue

            if latest < from_block:
                continue

            if await self.poll_range(from_block, latest):
                from_block = latest + 1

    async def poll_range(self, from_block: int, to_block: int) -> bool:
        """
        Fetch and deliver events for a block range

        Returns:
            True if every subscribed event was fetched
        """
        complete = True
        for event_name, listeners in list(self._listeners.items()):
            try:
                event = getattr(self.contract.events, event_name)
                logs = await event.get_logs(from_block=from_block, to_block=to_block)
            except Exception as e:
                logger.warning(f"Error fetching {event_name} logs for blocks {from_block}-{to_block}: {e}")
                complete = False
                continue

            for log in logs:
                notification = self.to_notification(event_name, log)
                for listener in list(listeners):
                    try:
                        await listener(notification)
                    except Exception:
                        logger.exception(f"Listener for {event_name} failed")
        return complete

    @staticmethod
    def to_notification(event_name: str, log: Any) -> EventNotification:
        return EventNotification(
            event_name=event_name,
            args=dict(log.get("args") or {}),
            transaction_hash=to_hex_string(log.get("transactionHash")) or None,
            log_index=log.get("logIndex"),
            block_number=log.get("blockNumber"),
        )


class _Web3Contract:
    """Shared read, transact and event plumbing for the contract adapters"""

    def __init__(
        self,
        w3: AsyncWeb3,
        address: str,
        abi: List[Dict[str, Any]],
        poll_interval: float = 2.0,
        confirmation_timeout: Optional[float] = None,
    ):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=abi)
        self.confirmation_timeout = confirmation_timeout
        self.poller = ContractEventPoller(w3, self.contract, poll_interval)

    async def name(self) -> str:
        return await self.contract.functions.name().call()

    async def symbol(self) -> str:
        return await self.contract.functions.symbol().call()

    def on(self, event_name: str, listener: EventListener) -> None:
        self.poller.on(event_name, listener)

    def off(self, event_name: str, listener: EventListener) -> None:
        self.poller.off(event_name, listener)

    async def close(self) -> None:
        await self.poller.close()

    async def _transact(self, function: Any, sender: str) -> Web3PendingTransaction:
        tx_hash = await function.transact({"from": Web3.to_checksum_address(sender)})
        return Web3PendingTransaction(self.w3, tx_hash, timeout=self.confirmation_timeout)


class Web3TokenContract(_Web3Contract):
    """ERC-20 token adapter"""

    async def balance_of(self, owner: str) -> int:
        return int(await self.contract.functions.balanceOf(Web3.to_checksum_address(owner)).call())

    async def allowance(self, owner: str, spender: str) -> int:
        return int(
            await self.contract.functions.allowance(
                Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
            ).call()
        )

    async def transfer(self, to: str, amount: int, sender: str) -> Web3PendingTransaction:
        function = self.contract.functions.transfer(Web3.to_checksum_address(to), int(amount))
        return await self._transact(function, sender)

    async def approve(self, spender: str, amount: int, sender: str) -> Web3PendingTransaction:
        function = self.contract.functions.approve(Web3.to_checksum_address(spender), int(amount))
        return await self._transact(function, sender)


class Web3NFTContract(_Web3Contract):
    """NFT collection adapter"""

    async def mint_fee(self) -> int:
        return int(await self.contract.functions.mintFee().call())

    async def token_uri(self, token_id: int) -> str:
        return await self.contract.functions.tokenURI(int(token_id)).call()

    async def owner_of(self, token_id: int) -> str:
        return await self.contract.functions.ownerOf(int(token_id)).call()

    async def mint(self, sender: str) -> Web3PendingTransaction:
        return await self._transact(self.contract.functions.mint(), sender)
