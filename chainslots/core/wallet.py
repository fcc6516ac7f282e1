"""
Wallet ledger: balance plus the rules for mutating it.

States:
    DISCONNECTED --connect()--> IDLE --begin_spin()--> SPINNING
    SPINNING --finish_spin()--> IDLE
    any state --disconnect()--> DISCONNECTED

Every rejected operation raises before touching the balance.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from chainslots.core.exceptions import (
    InsufficientFunds,
    SpinInProgress,
    WalletDisconnected,
)
from chainslots.core.logger import get_logger
from chainslots.core.money import AmountLike, ZERO, display, to_amount, to_positive_amount
from chainslots.core.rng import TrueRNG

logger = get_logger("wallet")

DEFAULT_STARTING_BALANCE = Decimal("1000")
DEFAULT_NETWORK = "Ethereum Mainnet"


class WalletState(str, Enum):
    DISCONNECTED = "disconnected"
    IDLE = "idle"
    SPINNING = "spinning"


class WalletLedger:
    def __init__(
        self,
        starting_balance: AmountLike = DEFAULT_STARTING_BALANCE,
        network: str = DEFAULT_NETWORK,
        rng: Optional[TrueRNG] = None,
    ):
        self.starting_balance = to_amount(starting_balance)
        if self.starting_balance < 0:
            raise ValueError("starting_balance must be non-negative")
        self.default_network = network
        self.rng = rng if rng is not None else TrueRNG()

        self.state = WalletState.DISCONNECTED
        self.address = ""
        self.network = ""
        self._balance = ZERO

    # ==================== Queries ====================

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def connected(self) -> bool:
        return self.state is not WalletState.DISCONNECTED

    @property
    def spinning(self) -> bool:
        return self.state is WalletState.SPINNING

    def can_afford(self, amount: AmountLike) -> bool:
        """True when a bet of amount would be accepted right now."""
        value = to_amount(amount)
        return (
            self.state is WalletState.IDLE
            and ZERO < value <= self._balance
        )

    def short_address(self) -> str:
        if not self.address:
            return ""
        return f"{self.address[:6]}...{self.address[-4:]}"

    def to_dict(self) -> dict:
        return {
            "connected": self.connected,
            "address": self.address,
            "short_address": self.short_address(),
            "balance": display(self._balance),
            "network": self.network,
            "state": self.state.value,
        }

    # ==================== Lifecycle ====================

    def connect(self) -> str:
        """Fund a fresh wallet. Reconnecting replaces any existing one."""
        self.address = "0x" + self.rng.token_hex(20)
        self.network = self.default_network
        self._balance = self.starting_balance
        self.state = WalletState.IDLE
        logger.info(
            f"Wallet connected: {self.short_address()}",
            extra={"balance": str(self._balance), "network": self.network},
        )
        return self.address

    def disconnect(self):
        if self.state is WalletState.DISCONNECTED:
            return
        if self.state is WalletState.SPINNING:
            logger.warning(f"Wallet {self.short_address()} disconnected mid-spin")
        logger.info(f"Wallet disconnected: {self.short_address()}")
        self.state = WalletState.DISCONNECTED
        self.address = ""
        self.network = ""
        self._balance = ZERO

    # ==================== Mutations ====================

    def _check_debit(self, amount: Decimal):
        if self.state is WalletState.DISCONNECTED:
            raise WalletDisconnected()
        if self.state is WalletState.SPINNING:
            raise SpinInProgress()
        if amount > self._balance:
            raise InsufficientFunds(
                f"Insufficient balance: {display(self._balance)} available, "
                f"{display(amount)} requested"
            )

    def debit(self, amount: AmountLike) -> Decimal:
        """Subtract amount from the balance; returns the new balance."""
        value = to_positive_amount(amount)
        self._check_debit(value)
        self._balance -= value
        return self._balance

    def credit(self, amount: AmountLike) -> Decimal:
        """Add amount to the balance; returns the new balance."""
        value = to_amount(amount)
        if value < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        if not self.connected:
            raise WalletDisconnected()
        self._balance += value
        return self._balance

    def begin_spin(self, bet: AmountLike) -> Decimal:
        """Debit the stake and lock the wallet until finish_spin()."""
        new_balance = self.debit(bet)
        self.state = WalletState.SPINNING
        return new_balance

    def finish_spin(self, payout: AmountLike = ZERO) -> Decimal:
        """Credit the net payout (if any) and unlock the wallet."""
        if not self.connected:
            raise WalletDisconnected()
        if self.state is not WalletState.SPINNING:
            raise RuntimeError("finish_spin() called with no spin in progress")
        value = to_amount(payout)
        if value > 0:
            self.credit(value)
        self.state = WalletState.IDLE
        return self._balance
