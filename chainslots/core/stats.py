from dataclasses import dataclass
from decimal import Decimal

from chainslots.core.money import ZERO, display
from chainslots.core.transactions import Transaction, TransactionKind


@dataclass(frozen=True)
class SessionTotals:
    total_wagered: Decimal = ZERO
    total_won: Decimal = ZERO
    total_fees: Decimal = ZERO
    spins: int = 0
    wins: int = 0

    @property
    def net_profit(self) -> Decimal:
        return self.total_won - self.total_wagered

    @property
    def win_rate(self) -> float:
        return self.wins / self.spins if self.spins else 0.0

    def to_dict(self) -> dict:
        return {
            "total_wagered": display(self.total_wagered),
            "total_won": display(self.total_won),
            "total_fees": display(self.total_fees),
            "net_profit": display(self.net_profit),
            "spins": self.spins,
            "wins": self.wins,
            "win_rate": round(self.win_rate, 4),
        }


class SessionAggregator:
    """Running totals over every transaction emitted in a session."""

    def __init__(self):
        self.total_wagered = ZERO
        self.total_won = ZERO
        self.total_fees = ZERO
        self.spins = 0
        self.wins = 0

    def on_transaction(self, tx: Transaction):
        if tx.kind is TransactionKind.BET:
            self.total_wagered += tx.amount
            self.spins += 1
        elif tx.kind is TransactionKind.WIN:
            self.total_won += tx.amount
            self.wins += 1
        elif tx.kind is TransactionKind.FEE:
            self.total_fees += tx.amount

    @property
    def net_profit(self) -> Decimal:
        return self.total_won - self.total_wagered

    def totals(self) -> SessionTotals:
        return SessionTotals(
            total_wagered=self.total_wagered,
            total_won=self.total_won,
            total_fees=self.total_fees,
            spins=self.spins,
            wins=self.wins,
        )
