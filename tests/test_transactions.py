"""
Tests for token transfers and the approve-then-mint sequence
"""

import asyncio

import pytest

from dapp_offchain.enums import TransactionKind
from dapp_offchain.errors import (
    TransactionFailure,
    TransactionInProgress,
    UserRejected,
    ValidationError,
)
from dapp_offchain.models import TransactionResult
from dapp_offchain.transactions import TransactionOrchestrator

from .mocks import ACCOUNT, NFT_ADDRESS, RECIPIENT, WEI


def _mutations(contract):
    return [call[0] for call in contract.calls if call[0] in ("transfer", "approve", "mint")]


@pytest.mark.unit
class TestTransferTokens:
    """Test token transfers"""

    @pytest.mark.asyncio
    async def test_transfer_updates_balance_and_clears_inputs(self, connected_session, orchestrator, state, token):
        """Test the 1000 -> 950 transfer scenario"""
        await connected_session()
        assert state.token.balance == "1000"
        state.set_transfer_inputs(RECIPIENT, "50")

        result = await orchestrator.transfer_tokens()

        assert result.kind == TransactionKind.TRANSFER
        assert result.tx_hash.startswith("0x")
        assert ("transfer", RECIPIENT, 50 * WEI, ACCOUNT) in token.calls
        assert state.token.balance == "950"
        assert state.recipient == ""
        assert state.amount == ""

    @pytest.mark.asyncio
    async def test_explicit_arguments(self, connected_session, orchestrator, state, token):
        await connected_session()

        await orchestrator.transfer_tokens(f"  {RECIPIENT} ", "0.5")

        assert ("transfer", RECIPIENT, 5 * 10**17, ACCOUNT) in token.calls
        assert state.token.balance == "999.5"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recipient, amount", [("", "50"), (RECIPIENT, ""), ("   ", "50"), (RECIPIENT, "  ")])
    async def test_missing_fields_rejected_before_network(
        self, connected_session, orchestrator, state, token, recipient, amount
    ):
        await connected_session()
        state.set_transfer_inputs(recipient, amount)

        with pytest.raises(ValidationError, match="Please fill in all fields"):
            await orchestrator.transfer_tokens()

        assert _mutations(token) == []

    @pytest.mark.asyncio
    async def test_invalid_amount(self, connected_session, orchestrator, token):
        await connected_session()

        with pytest.raises(ValidationError):
            await orchestrator.transfer_tokens(RECIPIENT, "fifty")

        assert _mutations(token) == []

    @pytest.mark.asyncio
    async def test_not_connected(self, orchestrator, token):
        with pytest.raises(ValidationError):
            await orchestrator.transfer_tokens(RECIPIENT, "50")

        assert _mutations(token) == []

    @pytest.mark.asyncio
    async def test_rejected_transfer_keeps_inputs(self, connected_session, orchestrator, state, token):
        await connected_session()
        state.set_transfer_inputs(RECIPIENT, "50")
        token.fail("transfer", Exception("MetaMask Tx Signature: User denied transaction signature."))

        with pytest.raises(UserRejected):
            await orchestrator.transfer_tokens()

        assert state.recipient == RECIPIENT
        assert state.amount == "50"
        assert state.token.balance == "1000"

    @pytest.mark.asyncio
    async def test_reverted_transfer_keeps_inputs(self, connected_session, orchestrator, state, token):
        await connected_session()
        state.set_transfer_inputs(RECIPIENT, "5000")
        token.wait_error = TransactionFailure("execution reverted: insufficient balance")

        with pytest.raises(TransactionFailure, match="Failed to transfer tokens"):
            await orchestrator.transfer_tokens()

        assert state.recipient == RECIPIENT
        assert state.amount == "5000"
        assert state.token.balance == "1000"
        assert not orchestrator.is_pending(TransactionKind.TRANSFER)

    @pytest.mark.asyncio
    async def test_balance_refresh_failure_still_confirms(self, connected_session, orchestrator, state, token, caplog):
        await connected_session()
        state.set_transfer_inputs(RECIPIENT, "50")
        original_balance_of = token.balance_of

        async def flaky_balance_of(owner):
            if token.call_count("transfer"):
                raise Exception("node unavailable")
            return await original_balance_of(owner)

        token.balance_of = flaky_balance_of

        result = await orchestrator.transfer_tokens()

        assert result.tx_hash
        assert state.token.balance == "1000"
        assert state.amount == ""
        assert "Error refreshing balance" in caplog.text


@pytest.mark.unit
class TestMintNFT:
    """Test the approve-then-mint sequence"""

    @pytest.mark.asyncio
    async def test_mint_with_short_allowance_approves_once(self, connected_session, orchestrator, state, token, nft):
        await connected_session()

        result = await orchestrator.mint_nft()

        assert token.call_count("approve") == 1
        assert ("approve", NFT_ADDRESS, 50 * WEI, ACCOUNT) in token.calls
        assert nft.call_count("mint") == 1
        assert token.submitted[0].confirmed
        assert result.kind == TransactionKind.MINT
        assert result.approve_tx_hash == token.submitted[0].tx_hash
        assert result.tx_hash == nft.submitted[0].tx_hash
        assert state.token.balance == "950"

    @pytest.mark.asyncio
    async def test_mint_with_sufficient_allowance_skips_approve(self, connected_session, orchestrator, token, nft):
        await connected_session()
        token.set_allowance(ACCOUNT, NFT_ADDRESS, 100 * WEI)

        result = await orchestrator.mint_nft()

        assert token.call_count("approve") == 0
        assert nft.call_count("mint") == 1
        assert result.approve_tx_hash is None

    @pytest.mark.asyncio
    async def test_approve_confirmed_before_mint_submitted(self, connected_session, orchestrator, token, nft):
        await connected_session()
        token.hold_transactions = True

        task = asyncio.create_task(orchestrator.mint_nft())
        for _ in range(5):
            await asyncio.sleep(0)

        assert token.call_count("approve") == 1
        assert nft.call_count("mint") == 0

        token.submitted[0].release()
        await task

        assert nft.call_count("mint") == 1

    @pytest.mark.asyncio
    async def test_rejected_approve_never_mints(self, connected_session, orchestrator, state, token, nft):
        await connected_session()
        token.fail("approve", Exception({"code": 4001, "message": "User rejected the request."}))

        with pytest.raises(UserRejected):
            await orchestrator.mint_nft()

        assert nft.call_count("mint") == 0
        assert state.token.balance == "1000"

    @pytest.mark.asyncio
    async def test_mint_fee_read_failure(self, connected_session, orchestrator, token, nft):
        await connected_session()
        nft.fail("mint_fee", Exception("connection refused"))

        with pytest.raises(TransactionFailure, match="Failed to mint NFT"):
            await orchestrator.mint_nft()

        assert _mutations(token) == []
        assert nft.call_count("mint") == 0

    @pytest.mark.asyncio
    async def test_mint_not_connected(self, orchestrator, nft):
        with pytest.raises(ValidationError, match="Please connect your wallet"):
            await orchestrator.mint_nft()
        assert nft.call_count("mint_fee") == 0

    @pytest.mark.asyncio
    async def test_result_fields(self, connected_session, orchestrator, token):
        """Test that a confirmed mint reports its approval and clears the pending flags"""
        await connected_session()

        result = await orchestrator.mint_nft()

        assert set(TransactionResult.model_fields) == {"kind", "tx_hash", "approve_tx_hash"}
        assert result.approve_tx_hash == token.submitted[0].tx_hash
        assert not any(orchestrator.is_pending(kind) for kind in TransactionKind)


@pytest.mark.unit
class TestInFlightGuard:
    """Test rejection of concurrent submissions of the same operation"""

    @pytest.mark.asyncio
    async def test_second_transfer_rejected_while_pending(self, connected_session, orchestrator, token):
        await connected_session()
        token.hold_transactions = True

        first = asyncio.create_task(orchestrator.transfer_tokens(RECIPIENT, "10"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert orchestrator.is_pending(TransactionKind.TRANSFER)

        with pytest.raises(TransactionInProgress):
            await orchestrator.transfer_tokens(RECIPIENT, "10")

        token.submitted[0].release()
        await first

        assert token.call_count("transfer") == 1
        assert not orchestrator.is_pending(TransactionKind.TRANSFER)

    @pytest.mark.asyncio
    async def test_second_mint_rejected_while_pending(self, connected_session, orchestrator, token, nft):
        await connected_session()
        nft.hold_transactions = True

        first = asyncio.create_task(orchestrator.mint_nft())
        for _ in range(10):
            await asyncio.sleep(0)

        with pytest.raises(TransactionInProgress):
            await orchestrator.mint_nft()

        nft.submitted[0].release()
        await first

        assert token.call_count("approve") == 1
        assert nft.call_count("mint") == 1

    @pytest.mark.asyncio
    async def test_different_operations_do_not_block(self, connected_session, orchestrator, token, nft):
        await connected_session()
        token.set_allowance(ACCOUNT, NFT_ADDRESS, 100 * WEI)
        token.hold_transactions = True

        transfer = asyncio.create_task(orchestrator.transfer_tokens(RECIPIENT, "10"))
        for _ in range(5):
            await asyncio.sleep(0)

        await orchestrator.mint_nft()

        token.submitted[0].release()
        await transfer

    @pytest.mark.asyncio
    async def test_guard_disabled_allows_concurrent_calls(self, connected_session, token, nft, loader, state):
        await connected_session()
        orchestrator = TransactionOrchestrator(token, nft, loader, state, guard_in_flight=False)
        token.hold_transactions = True

        tasks = [asyncio.create_task(orchestrator.transfer_tokens(RECIPIENT, "10")) for _ in range(2)]
        for _ in range(5):
            await asyncio.sleep(0)

        assert token.call_count("transfer") == 2

        for tx in token.submitted:
            tx.release()
        await asyncio.gather(*tasks)
