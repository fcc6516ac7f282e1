"""Game and ledger core for ChainSlots."""

from .exceptions import (
    LedgerError,
    InvalidBetAmount,
    InsufficientFunds,
    WalletDisconnected,
    SpinInProgress,
)
from .slots import SYMBOLS, PAYOUT_MULTIPLIERS, Outcome, OutcomeResolver, SpinResult
from .rng import RandomSymbolSource, TrueRNG
from .fees import FeeBreakdown, FeePolicy
from .wallet import WalletLedger, WalletState
from .transactions import Transaction, TransactionKind, TransactionLog
from .stats import SessionAggregator, SessionTotals
from .machine import PendingSpin, ReelStopped, SlotMachine, SpinSettlement

__all__ = [
    "LedgerError",
    "InvalidBetAmount",
    "InsufficientFunds",
    "WalletDisconnected",
    "SpinInProgress",
    "SYMBOLS",
    "PAYOUT_MULTIPLIERS",
    "Outcome",
    "OutcomeResolver",
    "SpinResult",
    "RandomSymbolSource",
    "TrueRNG",
    "FeeBreakdown",
    "FeePolicy",
    "WalletLedger",
    "WalletState",
    "Transaction",
    "TransactionKind",
    "TransactionLog",
    "SessionAggregator",
    "SessionTotals",
    "PendingSpin",
    "ReelStopped",
    "SlotMachine",
    "SpinSettlement",
]
