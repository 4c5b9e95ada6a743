"""
Pytest configuration for engine tests

Fixtures wiring the engine components to the in-memory mocks.
"""

import pytest

from dapp_offchain.config import Settings
from dapp_offchain.events import EventReconciler
from dapp_offchain.loader import ContractDataLoader
from dapp_offchain.state import DappState
from dapp_offchain.transactions import TransactionOrchestrator
from dapp_offchain.wallet import WalletSession

from .mocks import ACCOUNT, WEI, MockNFTContract, MockTokenContract, MockWalletProvider


@pytest.fixture
def test_settings():
    """Settings pinned to a local Hardhat node, independent of any .env file"""
    return Settings(
        _env_file=None,
        rpc_url="http://127.0.0.1:8545",
        expected_chain_id=31337,
        explorer_url="https://explorer.example/",
        event_log_limit=100,
        guard_in_flight=True,
    )


@pytest.fixture
def state():
    return DappState()


@pytest.fixture
def token():
    """Token with 1000 XTK held by the test account"""
    contract = MockTokenContract()
    contract.set_balance(ACCOUNT, 1000 * WEI)
    return contract


@pytest.fixture
def nft(token):
    """NFT collection charging a 50 XTK mint fee"""
    return MockNFTContract(token=token, mint_fee=50 * WEI)


@pytest.fixture
def provider():
    return MockWalletProvider(accounts=[ACCOUNT], chain_id=31337)


@pytest.fixture
def loader(token, nft, state):
    return ContractDataLoader(token, nft, state)


@pytest.fixture
def session(provider, loader, state):
    return WalletSession(provider, loader, state, expected_chain_id=31337)


@pytest.fixture
def reconciler(token, nft, state):
    return EventReconciler(token, nft, state)


@pytest.fixture
def orchestrator(token, nft, loader, state):
    return TransactionOrchestrator(token, nft, loader, state)


@pytest.fixture
def connected_session(session):
    """Factory fixture: await it to get a connected session"""

    async def _connect():
        await session.connect()
        return session

    return _connect
