"""
XToken dApp Off-chain Library

Client-side state synchronization for the XToken / XNonFunToken dApp.
Keeps wallet identity, network and contract state consistent across provider
notifications and event redeliveries, and sequences approve-then-mint.
"""

from .chain_context import EvmChainContext
from .events import EventReconciler
from .loader import ContractDataLoader
from .runtime import DappRuntime
from .state import DappState
from .transactions import TransactionOrchestrator
from .wallet import WalletSession


__all__ = [
    "ContractDataLoader",
    "DappRuntime",
    "DappState",
    "EventReconciler",
    "EvmChainContext",
    "TransactionOrchestrator",
    "WalletSession",
]
