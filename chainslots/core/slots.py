from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from chainslots.core.money import AmountLike, ZERO, display, to_amount

# Reel alphabet, in draw order
SYMBOLS: Tuple[str, ...] = ("💎", "🔷", "⭐", "🌟", "💰", "🎰", "7️⃣", "🍒")

PAYOUT_MULTIPLIERS: Dict[str, int] = {
    "💎": 50,
    "7️⃣": 25,
    "💰": 15,
    "🎰": 10,
    "⭐": 8,
    "🌟": 5,
    "🔷": 3,
    "🍒": 2,
}

FALLBACK_MULTIPLIER = 2
PARTIAL_MATCH_DIVISOR = 5
REEL_COUNT = 3


class Outcome(str, Enum):
    JACKPOT = "jackpot"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class SpinResult:
    symbols: Tuple[str, str, str]
    outcome: Outcome
    gross_win: Decimal
    bet: Decimal
    multiplier: Decimal = ZERO
    matched_symbol: Optional[str] = None

    @property
    def win(self) -> bool:
        return self.gross_win > 0

    def to_dict(self) -> dict:
        return {
            "reels": list(self.symbols),
            "outcome": self.outcome.value,
            "win": self.win,
            "is_jackpot": self.outcome is Outcome.JACKPOT,
            "matched_symbol": self.matched_symbol,
            "multiplier": float(self.multiplier),
            "bet": display(self.bet),
            "gross_win": display(self.gross_win),
        }


def multiplier_for(symbol: str) -> int:
    """Payout multiplier for a symbol; unknown symbols pay like the lowest tier."""
    return PAYOUT_MULTIPLIERS.get(symbol, FALLBACK_MULTIPLIER)


def paytable() -> list:
    """Symbols with their jackpot and pair multipliers, richest first."""
    rows = [
        {
            "symbol": symbol,
            "three_of_a_kind": multiplier,
            "pair": multiplier / PARTIAL_MATCH_DIVISOR,
        }
        for symbol, multiplier in PAYOUT_MULTIPLIERS.items()
    ]
    return sorted(rows, key=lambda row: row["three_of_a_kind"], reverse=True)


class OutcomeResolver:
    """
    Classifies a 3-reel result.

    Three of a kind pays bet * multiplier. A single pair (any two
    positions) pays floor(bet * multiplier / 5) in whole units; a pair
    that floors to zero counts as no match. Pure: no state, no I/O.
    """

    def _find_pair(self, reels: Sequence[str]) -> Optional[str]:
        a, b, c = reels
        if a == b or a == c:
            return a
        if b == c:
            return b
        return None

    def resolve(self, symbols: Sequence[str], bet_amount: AmountLike) -> SpinResult:
        if len(symbols) != REEL_COUNT:
            raise ValueError(f"Expected {REEL_COUNT} symbols, got {len(symbols)}")

        reels = tuple(symbols)
        bet = to_amount(bet_amount)

        if reels[0] == reels[1] == reels[2]:
            multiplier = Decimal(multiplier_for(reels[0]))
            return SpinResult(
                symbols=reels,
                outcome=Outcome.JACKPOT,
                gross_win=bet * multiplier,
                bet=bet,
                multiplier=multiplier,
                matched_symbol=reels[0],
            )

        pair_symbol = self._find_pair(reels)
        if pair_symbol is not None:
            multiplier = Decimal(multiplier_for(pair_symbol)) / PARTIAL_MATCH_DIVISOR
            gross_win = (bet * multiplier).to_integral_value(rounding=ROUND_DOWN)
            if gross_win > 0:
                return SpinResult(
                    symbols=reels,
                    outcome=Outcome.PARTIAL_MATCH,
                    gross_win=gross_win,
                    bet=bet,
                    multiplier=multiplier,
                    matched_symbol=pair_symbol,
                )

        return SpinResult(symbols=reels, outcome=Outcome.NO_MATCH, gross_win=ZERO, bet=bet)
