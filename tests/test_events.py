"""
Tests for event reconciliation
"""

import asyncio

import pytest

from dapp_offchain.enums import ContractEvent, EventCategory
from dapp_offchain.events import EventReconciler, event_identity
from dapp_offchain.models import NFTMintEvent, NFTTransferEvent, TokenTransferEvent
from dapp_offchain.state import DappState

from .mocks import ACCOUNT, OTHER_ACCOUNT, WEI, make_notification


TOKENS_TRANSFERRED = ContractEvent.TOKENS_TRANSFERRED.value
NFT_MINTED = ContractEvent.NFT_MINTED.value
NFT_TRANSFERRED = ContractEvent.NFT_TRANSFERRED.value


def _mint(token_id, tx_hash="0xabc"):
    return make_notification(NFT_MINTED, {"owner": ACCOUNT, "tokenId": token_id}, transaction_hash=tx_hash)


def _token_transfer(log_index, tx_hash="0xabc", amount=50 * WEI):
    return make_notification(
        TOKENS_TRANSFERRED,
        {"from": ACCOUNT, "to": OTHER_ACCOUNT, "amount": amount},
        transaction_hash=tx_hash,
        log_index=log_index,
    )


@pytest.mark.unit
class TestSubscription:
    """Test listener registration"""

    def test_event_identity_format(self):
        assert event_identity(EventCategory.MINT, "0xabc", 7) == "mint_0xabc_7"
        assert event_identity(EventCategory.TOKEN, "0xdef", 0) == "token_0xdef_0"

    def test_subscribe_registers_three_listeners(self, reconciler, token, nft):
        reconciler.subscribe()

        assert reconciler.subscribed
        assert token.listener_count(TOKENS_TRANSFERRED) == 1
        assert nft.listener_count(NFT_MINTED) == 1
        assert nft.listener_count(NFT_TRANSFERRED) == 1

    def test_unsubscribe_removes_listeners(self, reconciler, token, nft):
        reconciler.subscribe()
        reconciler.unsubscribe()

        assert not reconciler.subscribed
        assert token.listener_count(TOKENS_TRANSFERRED) == 0
        assert nft.listener_count(NFT_MINTED) == 0
        assert nft.listener_count(NFT_TRANSFERRED) == 0

    def test_double_subscribe_keeps_one_listener_each(self, reconciler, token):
        reconciler.subscribe()
        reconciler.subscribe()
        assert token.listener_count(TOKENS_TRANSFERRED) == 1


@pytest.mark.unit
class TestDeduplication:
    """Test that redelivered notifications are dropped"""

    @pytest.mark.asyncio
    async def test_duplicate_mint_dropped(self, reconciler, state, nft):
        reconciler.subscribe()

        await nft.emit(NFT_MINTED, _mint(7))
        await nft.emit(NFT_MINTED, _mint(7))

        assert len(state.events) == 1
        assert reconciler.seen_count == 1
        assert nft.call_count("token_uri") == 1

    @pytest.mark.asyncio
    async def test_log_index_zero_is_distinct_from_one(self, reconciler, state, token):
        reconciler.subscribe()

        await token.emit(TOKENS_TRANSFERRED, _token_transfer(0))
        await token.emit(TOKENS_TRANSFERRED, _token_transfer(1))
        await token.emit(TOKENS_TRANSFERRED, _token_transfer(0))

        assert len(state.events) == 2

    @pytest.mark.asyncio
    async def test_missing_log_index_never_collides(self, reconciler, state, token):
        reconciler.subscribe()

        await token.emit(TOKENS_TRANSFERRED, _token_transfer(None))
        await token.emit(TOKENS_TRANSFERRED, _token_transfer(None))

        assert len(state.events) == 2

    @pytest.mark.asyncio
    async def test_categories_do_not_collide(self, reconciler, state, nft):
        """Test that a mint and a transfer in one transaction with the same token id are both kept"""
        reconciler.subscribe()

        await nft.emit(NFT_MINTED, _mint(7))
        await nft.emit(
            NFT_TRANSFERRED,
            make_notification(NFT_TRANSFERRED, {"from": ACCOUNT, "to": OTHER_ACCOUNT, "tokenId": 7}),
        )

        assert len(state.events) == 2

    @pytest.mark.asyncio
    async def test_resubscribe_clears_identities(self, reconciler, state, nft):
        reconciler.subscribe()
        await nft.emit(NFT_MINTED, _mint(7))

        reconciler.unsubscribe()
        reconciler.subscribe()
        await nft.emit(NFT_MINTED, _mint(7))

        assert len(state.events) == 2

    @pytest.mark.asyncio
    async def test_ignored_when_unsubscribed(self, reconciler, state):
        await reconciler.handle_nft_minted(_mint(7))
        assert state.events == []


@pytest.mark.unit
class TestEventLog:
    """Test domain event normalization and ordering"""

    @pytest.mark.asyncio
    async def test_token_transfer_normalized(self, reconciler, state, token):
        reconciler.subscribe()
        await token.emit(TOKENS_TRANSFERRED, _token_transfer(0))

        event = state.events[0]
        assert isinstance(event, TokenTransferEvent)
        assert event.from_address == ACCOUNT
        assert event.to_address == OTHER_ACCOUNT
        assert event.amount == "50"

    @pytest.mark.asyncio
    async def test_nft_transfer_normalized(self, reconciler, state, nft):
        reconciler.subscribe()
        await nft.emit(
            NFT_TRANSFERRED,
            make_notification(NFT_TRANSFERRED, {"from": ACCOUNT, "to": OTHER_ACCOUNT, "tokenId": 3}),
        )

        event = state.events[0]
        assert isinstance(event, NFTTransferEvent)
        assert event.token_id == "3"

    @pytest.mark.asyncio
    async def test_bounded_log_keeps_most_recent(self, token, nft):
        state = DappState(event_log_limit=3)
        reconciler = EventReconciler(token, nft, state)
        reconciler.subscribe()

        for i in range(5):
            await token.emit(TOKENS_TRANSFERRED, _token_transfer(i, amount=i * WEI))

        assert [e.amount for e in state.events] == ["4", "3", "2"]


@pytest.mark.unit
class TestMintEnrichment:
    """Test token URI enrichment of mint events"""

    @pytest.mark.asyncio
    async def test_uri_attached(self, reconciler, state, nft):
        nft.token_uris[7] = "ipfs://meta/7.json"
        reconciler.subscribe()

        await nft.emit(NFT_MINTED, _mint(7))

        event = state.events[0]
        assert isinstance(event, NFTMintEvent)
        assert event.token_id == "7"
        assert event.token_uri == "ipfs://meta/7.json"
        assert state.last_mint.token_uri == "ipfs://meta/7.json"

    @pytest.mark.asyncio
    async def test_enrichment_failure_keeps_event(self, reconciler, state, nft, caplog):
        nft.fail("token_uri", Exception("execution reverted"))
        reconciler.subscribe()

        await nft.emit(NFT_MINTED, _mint(7))

        assert len(state.events) == 1
        assert state.events[0].token_uri == ""
        assert state.last_mint.token_id == "7"
        assert "Error fetching token URI" in caplog.text

    @pytest.mark.asyncio
    async def test_mint_logged_before_uri_resolves(self, reconciler, state, nft):
        """Test that a slow tokenURI does not reorder the log"""
        nft.uri_gate = asyncio.Event()
        reconciler.subscribe()

        first = asyncio.create_task(reconciler.handle_nft_minted(_mint(1, tx_hash="0x01")))
        await asyncio.sleep(0)
        await reconciler.handle_token_transfer(_token_transfer(0, tx_hash="0x02"))

        assert [type(e) for e in state.events] == [TokenTransferEvent, NFTMintEvent]
        assert state.events[1].token_uri == ""

        nft.uri_gate.set()
        await first

        assert state.events[1].token_uri == "ipfs://token/1"
