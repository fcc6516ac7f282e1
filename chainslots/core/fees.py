from dataclasses import dataclass
from decimal import Decimal

from chainslots.core.money import AmountLike, display, to_amount

DEFAULT_FEE_PERCENT = Decimal("2.5")


@dataclass(frozen=True)
class FeeBreakdown:
    gross_win: Decimal
    fee: Decimal
    net_win: Decimal

    def to_dict(self) -> dict:
        return {
            "gross_win": display(self.gross_win),
            "fee": display(self.fee),
            "net_win": display(self.net_win),
        }


class FeePolicy:
    """
    Platform fee on winnings (never on the stake).

    Decimal arithmetic is exact here, so fee + net_win == gross_win
    without any rounding residue.
    """

    def __init__(self, fee_percent: AmountLike = DEFAULT_FEE_PERCENT):
        percent = to_amount(fee_percent)
        if percent < 0 or percent > 100:
            raise ValueError(f"fee_percent must be within [0, 100], got {fee_percent}")
        self.fee_percent = percent
        self.fee_rate = percent / 100

    def apply(self, gross_win: AmountLike) -> FeeBreakdown:
        gross = to_amount(gross_win)
        if gross < 0:
            raise ValueError(f"gross_win must be non-negative, got {gross_win}")
        fee = gross * self.fee_rate
        return FeeBreakdown(gross_win=gross, fee=fee, net_win=gross - fee)
