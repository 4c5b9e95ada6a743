"""
dApp Models

Pydantic models for session identity, contract snapshots, domain events and
transaction results.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import TransactionKind


# Well-known chain ids and their display names
CHAIN_NAMES: dict[int, str] = {
    1: "mainnet",
    5: "goerli",
    10: "optimism",
    137: "matic",
    8453: "base",
    42161: "arbitrum",
    1337: "localhost",
    31337: "hardhat",
    11155111: "sepolia",
}


def chain_name(chain_id: int) -> str:
    """Get display name for a chain id"""
    return CHAIN_NAMES.get(int(chain_id), "unknown")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Session identity
# ============================================================================


class NetworkInfo(BaseModel):
    """Network identity reported by the wallet provider"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Network display name")
    chain_id: int = Field(description="EIP-155 chain id")

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "NetworkInfo":
        return cls(name=chain_name(chain_id), chain_id=int(chain_id))

    def is_expected(self, expected_chain_id: int) -> bool:
        """Check if this is the network the contracts are deployed on"""
        return self.chain_id == expected_chain_id


class ConnectResult(BaseModel):
    """Identity returned by a successful wallet connect"""

    model_config = ConfigDict(frozen=True)

    account: str
    network: NetworkInfo


# ============================================================================
# Contract snapshots
# ============================================================================


class TokenSnapshot(BaseModel):
    """Fungible token display values; balance is an 18-decimal string"""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    symbol: str = ""
    balance: str = ""


class NFTSnapshot(BaseModel):
    """NFT collection display values; mint_fee is an 18-decimal string"""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    symbol: str = ""
    mint_fee: str = ""


class MintRecord(BaseModel):
    """Last observed mint and its metadata URI"""

    model_config = ConfigDict(frozen=True)

    token_id: str
    token_uri: str = ""


class LoadResult(BaseModel):
    """Outcome of one ContractDataLoader.load call"""

    token_applied: bool = False
    nft_applied: bool = False

    @property
    def complete(self) -> bool:
        return self.token_applied and self.nft_applied


# ============================================================================
# Raw notifications
# ============================================================================


class EventNotification(BaseModel):
    """
    A raw delivery from a contract event stream

    args holds the decoded event arguments keyed by their ABI names.
    transaction_hash and log_index are None when the provider omitted them.
    """

    model_config = ConfigDict(frozen=True)

    event_name: str
    args: dict[str, Any] = Field(default_factory=dict)
    transaction_hash: str | None = None
    log_index: int | None = None
    block_number: int | None = Field(
        None, description="Block the log was mined in; informational only, the event log keeps delivery order"
    )


# ============================================================================
# Domain events (closed tagged variant)
# ============================================================================


class TokenTransferEvent(BaseModel):
    """Fungible token moved between two addresses"""

    type: Literal["token_transfer"] = "token_transfer"
    from_address: str
    to_address: str
    amount: str
    timestamp: datetime = Field(default_factory=_utc_now)


class NFTMintEvent(BaseModel):
    """
    NFT minted to an owner

    token_uri starts empty and is filled in once metadata enrichment
    completes; it stays empty if enrichment fails.
    """

    type: Literal["nft_mint"] = "nft_mint"
    owner: str
    token_id: str
    token_uri: str = ""
    timestamp: datetime = Field(default_factory=_utc_now)


class NFTTransferEvent(BaseModel):
    """NFT moved between two addresses"""

    type: Literal["nft_transfer"] = "nft_transfer"
    from_address: str
    to_address: str
    token_id: str
    timestamp: datetime = Field(default_factory=_utc_now)


DomainEvent = Annotated[
    Union[TokenTransferEvent, NFTMintEvent, NFTTransferEvent],
    Field(discriminator="type"),
]


# ============================================================================
# Transactions
# ============================================================================


class TransactionResult(BaseModel):
    """Result of a confirmed orchestrated operation"""

    kind: TransactionKind
    tx_hash: str = Field(description="Hash of the final transaction")
    approve_tx_hash: str | None = Field(None, description="Approval submitted before a mint, if any")
