"""
Ledger errors. Every one of them means the operation was refused and
nothing was mutated.
"""


class LedgerError(Exception):
    """Base class for refused wallet/ledger operations."""

    status_code = 400
    default_message = "Operation rejected"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidBetAmount(LedgerError):
    default_message = "Bet amount must be a positive number"


class InsufficientFunds(LedgerError):
    default_message = "Insufficient balance"


class WalletDisconnected(InsufficientFunds):
    """No active wallet. A disconnected wallet cannot cover any amount."""

    status_code = 409
    default_message = "Wallet is not connected"


class SpinInProgress(LedgerError):
    status_code = 409
    default_message = "A spin is already in progress"
