"""
The slot machine session actor.

Owns the wallet ledger and, while a wallet is connected, the session's
transaction log and running totals. All mutations for a spin happen in
two atomic steps: place_bet() debits and records the stake, and
resolve_pending() applies fee and credit once all three reels are known.
The paced reveal in between is cosmetic and can be cancelled by a
disconnect.
"""

import asyncio
import inspect
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Tuple, Union

from chainslots.config import AppConfig, SlotsConfig, WalletConfig
from chainslots.core.exceptions import LedgerError
from chainslots.core.fees import FeeBreakdown, FeePolicy
from chainslots.core.logger import get_logger
from chainslots.core.money import AmountLike, display, to_positive_amount
from chainslots.core.rng import RandomSymbolSource, SymbolSource, TrueRNG
from chainslots.core.slots import OutcomeResolver, SpinResult
from chainslots.core.stats import SessionAggregator, SessionTotals
from chainslots.core.transactions import Transaction, TransactionKind, TransactionLog
from chainslots.core.wallet import WalletLedger

logger = get_logger("machine")


@dataclass(frozen=True)
class ReelStopped:
    spin_id: str
    index: int
    symbol: str

    def to_dict(self) -> dict:
        return {
            "type": "reel_stopped",
            "spin_id": self.spin_id,
            "reel": self.index,
            "symbol": self.symbol,
        }


@dataclass(frozen=True)
class PendingSpin:
    spin_id: str
    bet: Decimal
    result: SpinResult
    bet_transaction: Transaction


@dataclass(frozen=True)
class SpinSettlement:
    spin_id: str
    result: SpinResult
    fee: FeeBreakdown
    balance: Decimal
    transactions: Tuple[Transaction, ...]

    def to_dict(self) -> dict:
        return {
            "spin_id": self.spin_id,
            **self.result.to_dict(),
            **self.fee.to_dict(),
            "balance": display(self.balance),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


EventCallback = Callable[[ReelStopped], Union[None, Awaitable[None]]]


class GameSession:
    """Session-scoped history: created on connect, dropped on disconnect."""

    def __init__(self, history_limit: int, rng: TrueRNG):
        self.log = TransactionLog(limit=history_limit, rng=rng)
        self.aggregator = SessionAggregator()

    def record(self, kind: TransactionKind, amount: Decimal) -> Transaction:
        tx = self.log.append(kind, amount)
        self.aggregator.on_transaction(tx)
        return tx


class SlotMachine:
    def __init__(
        self,
        slots_config: Optional[SlotsConfig] = None,
        wallet_config: Optional[WalletConfig] = None,
        rng: Optional[TrueRNG] = None,
        symbol_source: Optional[SymbolSource] = None,
        resolver: Optional[OutcomeResolver] = None,
    ):
        self.config = slots_config or SlotsConfig()
        wallet_config = wallet_config or WalletConfig()
        self.rng = rng if rng is not None else TrueRNG()

        self.wallet = WalletLedger(
            starting_balance=str(wallet_config.starting_balance),
            network=wallet_config.network,
            rng=self.rng,
        )
        self.symbol_source = symbol_source or RandomSymbolSource(self.rng)
        self.resolver = resolver or OutcomeResolver()
        self.fee_policy = FeePolicy(str(self.config.fee_percent))

        self.session: Optional[GameSession] = None
        self._pending: Optional[PendingSpin] = None

    @classmethod
    def from_settings(cls, config: AppConfig, **kwargs) -> "SlotMachine":
        return cls(slots_config=config.slots, wallet_config=config.wallet, **kwargs)

    # ==================== Wallet lifecycle ====================

    def connect_wallet(self) -> dict:
        if self._pending is not None:
            self._cancel_pending("wallet reconnected")
        self.wallet.connect()
        self.session = GameSession(self.config.history_limit, self.rng)
        return self.wallet.to_dict()

    def disconnect_wallet(self) -> dict:
        if self._pending is not None:
            self._cancel_pending("wallet disconnected")
        self.wallet.disconnect()
        self.session = None
        return self.wallet.to_dict()

    def _cancel_pending(self, reason: str):
        pending = self._pending
        self._pending = None
        logger.warning(
            f"Discarding pending spin {pending.spin_id}: {reason}",
            extra={"bet": str(pending.bet), "gross_win": str(pending.result.gross_win)},
        )

    # ==================== Spinning ====================

    @property
    def pending(self) -> Optional[PendingSpin]:
        return self._pending

    @property
    def spinning(self) -> bool:
        return self.wallet.spinning

    def place_bet(self, amount: AmountLike) -> PendingSpin:
        """
        Debit the stake and draw the reels.

        Raises:
            InvalidBetAmount: amount is not a positive number
            WalletDisconnected: no wallet is connected
            SpinInProgress: the previous spin has not been resolved
            InsufficientFunds: amount exceeds the balance
        """
        try:
            bet = to_positive_amount(amount)
            self.wallet.begin_spin(bet)
        except LedgerError as e:
            logger.warning(
                f"Bet rejected: {e.message}",
                extra={"bet": str(amount), "error": type(e).__name__},
            )
            raise

        bet_tx = self.session.record(TransactionKind.BET, bet)
        symbols = self.symbol_source.draw_reels(3)
        result = self.resolver.resolve(symbols, bet)

        self._pending = PendingSpin(
            spin_id=uuid.uuid4().hex,
            bet=bet,
            result=result,
            bet_transaction=bet_tx,
        )
        logger.debug(
            f"Spin {self._pending.spin_id} placed",
            extra={"bet": str(bet), "balance": str(self.wallet.balance)},
        )
        return self._pending

    def resolve_pending(self) -> SpinSettlement:
        """Apply fee and credit for the pending spin and unlock the wallet."""
        pending = self._pending
        if pending is None:
            raise RuntimeError("No spin is pending")
        self._pending = None

        result = pending.result
        fee = self.fee_policy.apply(result.gross_win)
        transactions = [pending.bet_transaction]

        if result.win:
            balance = self.wallet.finish_spin(fee.net_win)
            transactions.append(self.session.record(TransactionKind.WIN, fee.gross_win))
            if fee.fee > 0:
                transactions.append(self.session.record(TransactionKind.FEE, fee.fee))
            logger.info(
                f"Spin {pending.spin_id}: {result.outcome.value} "
                f"{' '.join(result.symbols)} pays {display(fee.net_win)}",
                extra={"gross_win": str(fee.gross_win), "fee": str(fee.fee)},
            )
        else:
            balance = self.wallet.finish_spin()
            logger.info(f"Spin {pending.spin_id}: no match {' '.join(result.symbols)}")

        return SpinSettlement(
            spin_id=pending.spin_id,
            result=result,
            fee=fee,
            balance=balance,
            transactions=tuple(transactions),
        )

    async def _emit(self, on_event: Optional[EventCallback], event: ReelStopped):
        if on_event is None:
            return
        outcome = on_event(event)
        if inspect.isawaitable(outcome):
            await outcome

    async def reveal_reels_and_resolve(
        self, on_event: Optional[EventCallback] = None
    ) -> Optional[SpinSettlement]:
        """
        Stop the reels one by one, then settle the pending spin.

        reel_delays are offsets from the start of the reveal. Returns None
        when the spin was cancelled (disconnect or reconnect) before it
        could settle. If the reveal itself fails or its task is cancelled,
        the spin still settles before the error propagates.
        """
        pending = self._pending
        if pending is None:
            raise RuntimeError("No spin is pending")

        try:
            await self._pace_reveal(pending, on_event)
        except BaseException as e:
            if self._pending is pending:
                logger.warning(
                    f"Reveal of spin {pending.spin_id} aborted, settling anyway",
                    extra={"error": type(e).__name__},
                )
                self.resolve_pending()
            raise

        if self._pending is not pending:
            return None
        return self.resolve_pending()

    async def _pace_reveal(self, pending: PendingSpin, on_event: Optional[EventCallback]):
        elapsed = 0.0
        for index, symbol in enumerate(pending.result.symbols):
            delay = self.config.reel_delays[index] if index < len(self.config.reel_delays) else elapsed
            if delay > elapsed:
                await asyncio.sleep(delay - elapsed)
                elapsed = delay
            if self._pending is not pending:
                return
            await self._emit(on_event, ReelStopped(pending.spin_id, index, symbol))

        if self.config.settle_delay > 0:
            await asyncio.sleep(self.config.settle_delay)

    async def spin(
        self, amount: AmountLike, on_event: Optional[EventCallback] = None
    ) -> Optional[SpinSettlement]:
        self.place_bet(amount)
        return await self.reveal_reels_and_resolve(on_event)

    # ==================== Observation ====================

    def totals(self) -> SessionTotals:
        if self.session is None:
            return SessionTotals()
        return self.session.aggregator.totals()

    def transactions(self) -> list:
        if self.session is None:
            return []
        return self.session.log.entries()

    def snapshot(self) -> dict:
        return {
            "wallet": self.wallet.to_dict(),
            "spinning": self.spinning,
            "fee_percent": float(self.fee_policy.fee_percent),
            "stats": self.totals().to_dict(),
            "transactions": self.session.log.to_list() if self.session else [],
        }
