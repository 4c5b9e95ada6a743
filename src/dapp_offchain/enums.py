"""
Shared Enums

Single source of truth for enums used across state, models and the
transaction layer.
"""

from enum import Enum


# ============================================================================
# Session Enums
# ============================================================================


class SessionStatus(str, Enum):
    """
    Wallet session lifecycle

    - DISCONNECTED: no account; the start state
    - CONNECTING: account access requested from the provider
    - CONNECTED: account and network resolved; self-transitions on
      account/chain change
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ProviderChannel(str, Enum):
    """Wallet provider notification channels"""

    ACCOUNTS_CHANGED = "accountsChanged"
    CHAIN_CHANGED = "chainChanged"


# ============================================================================
# Event Enums
# ============================================================================


class EventCategory(str, Enum):
    """Prefix used when building event identities"""

    TOKEN = "token"
    MINT = "mint"
    TRANSFER = "transfer"


class ContractEvent(str, Enum):
    """On-chain event names emitted by the token and NFT contracts"""

    TOKENS_TRANSFERRED = "TokensTransferred"
    NFT_MINTED = "NFTMinted"
    NFT_TRANSFERRED = "NFTTransferred"


# ============================================================================
# Transaction Enums
# ============================================================================


class TransactionKind(str, Enum):
    """Mutating operations run by the orchestrator"""

    TRANSFER = "transfer"
    MINT = "mint"
