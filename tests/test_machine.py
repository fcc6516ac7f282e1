import asyncio
import unittest
from decimal import Decimal

import pytest

from chainslots.config import SlotsConfig
from chainslots.core.exceptions import (
    InsufficientFunds,
    InvalidBetAmount,
    SpinInProgress,
    WalletDisconnected,
)
from chainslots.core.slots import Outcome
from chainslots.core.transactions import TransactionKind
from chainslots.core.wallet import WalletState

from tests.helpers import make_machine

JACKPOT = ["💎", "💎", "💎"]
PARTIAL = ["🍒", "🍒", "⭐"]
NO_MATCH = ["💎", "⭐", "🍒"]


class TestSlotMachineSpins(unittest.TestCase):

    def test_jackpot_settlement(self):
        machine = make_machine([JACKPOT])
        machine.connect_wallet()

        pending = machine.place_bet(10)
        self.assertEqual(machine.wallet.balance, Decimal("990"))
        self.assertTrue(machine.spinning)
        self.assertEqual(pending.result.outcome, Outcome.JACKPOT)

        settlement = machine.resolve_pending()
        self.assertEqual(settlement.fee.gross_win, Decimal("500"))
        self.assertEqual(settlement.fee.fee, Decimal("12.5"))
        self.assertEqual(settlement.fee.net_win, Decimal("487.5"))
        self.assertEqual(settlement.balance, Decimal("1477.5"))
        self.assertEqual(machine.wallet.state, WalletState.IDLE)

        kinds = [tx.kind for tx in machine.transactions()]
        self.assertEqual(kinds, [TransactionKind.FEE, TransactionKind.WIN, TransactionKind.BET])
        amounts = [tx.amount for tx in machine.transactions()]
        self.assertEqual(amounts, [Decimal("12.5"), Decimal("500"), Decimal("10")])

        totals = machine.totals()
        self.assertEqual(totals.total_wagered, Decimal("10"))
        self.assertEqual(totals.total_won, Decimal("500"))
        self.assertEqual(totals.total_fees, Decimal("12.5"))

    def test_partial_settlement(self):
        machine = make_machine([PARTIAL])
        machine.connect_wallet()
        machine.place_bet(10)
        settlement = machine.resolve_pending()

        self.assertEqual(settlement.result.gross_win, Decimal("4"))
        self.assertEqual(settlement.fee.fee, Decimal("0.1"))
        self.assertEqual(settlement.balance, Decimal("993.9"))

    def test_no_match_only_records_bet(self):
        machine = make_machine([NO_MATCH])
        machine.connect_wallet()
        machine.place_bet(10)
        settlement = machine.resolve_pending()

        self.assertEqual(settlement.result.outcome, Outcome.NO_MATCH)
        self.assertEqual(settlement.balance, Decimal("990"))
        self.assertEqual([tx.kind for tx in machine.transactions()], [TransactionKind.BET])
        self.assertEqual(len(settlement.transactions), 1)
        self.assertEqual(machine.totals().total_fees, 0)

    def test_second_bet_while_spinning_is_rejected(self):
        machine = make_machine([NO_MATCH])
        machine.connect_wallet()
        machine.place_bet(10)

        with self.assertRaises(SpinInProgress):
            machine.place_bet(10)
        self.assertEqual(machine.wallet.balance, Decimal("990"))
        self.assertEqual(len(machine.transactions()), 1)
        self.assertEqual(machine.totals().total_wagered, Decimal("10"))

        machine.resolve_pending()
        machine.place_bet(10)
        self.assertEqual(machine.wallet.balance, Decimal("980"))

    def test_bet_without_wallet_is_rejected(self):
        machine = make_machine([NO_MATCH])
        with self.assertRaises(WalletDisconnected):
            machine.place_bet(10)
        self.assertEqual(machine.transactions(), [])

    def test_bet_above_balance_is_rejected(self):
        machine = make_machine([NO_MATCH])
        machine.connect_wallet()
        with self.assertRaises(InsufficientFunds):
            machine.place_bet(1001)
        self.assertEqual(machine.wallet.balance, Decimal("1000"))
        self.assertFalse(machine.spinning)
        self.assertEqual(machine.transactions(), [])

    def test_invalid_bet_is_rejected(self):
        machine = make_machine([NO_MATCH])
        machine.connect_wallet()
        for bad in (0, -10, "ten"):
            with self.assertRaises(InvalidBetAmount):
                machine.place_bet(bad)
        self.assertEqual(machine.wallet.balance, Decimal("1000"))
        self.assertIsNone(machine.pending)

    def test_resolve_without_pending_spin(self):
        machine = make_machine([NO_MATCH])
        machine.connect_wallet()
        with self.assertRaises(RuntimeError):
            machine.resolve_pending()

    def test_disconnect_discards_pending_spin(self):
        machine = make_machine([JACKPOT])
        machine.connect_wallet()
        machine.place_bet(10)

        machine.disconnect_wallet()
        self.assertIsNone(machine.pending)
        self.assertEqual(machine.wallet.balance, 0)
        self.assertEqual(machine.transactions(), [])
        with self.assertRaises(RuntimeError):
            machine.resolve_pending()

    def test_reconnect_starts_new_session(self):
        machine = make_machine([JACKPOT])
        machine.connect_wallet()
        machine.place_bet(10)
        machine.resolve_pending()

        machine.disconnect_wallet()
        machine.connect_wallet()
        self.assertEqual(machine.wallet.balance, Decimal("1000"))
        self.assertEqual(machine.transactions(), [])
        self.assertEqual(machine.totals().total_won, 0)

    def test_conservation_over_many_spins(self):
        machine = make_machine(seed=42)
        machine.connect_wallet()
        start = machine.wallet.balance
        bets = Decimal("0")
        net_wins = Decimal("0")

        for n in range(300):
            bet = Decimal((n % 25) + 1)
            if not machine.wallet.can_afford(bet):
                break
            machine.place_bet(bet)
            settlement = machine.resolve_pending()
            bets += bet
            net_wins += settlement.fee.net_win
            self.assertGreaterEqual(machine.wallet.balance, 0)
            self.assertEqual(machine.wallet.balance, start - bets + net_wins)

        totals = machine.totals()
        self.assertEqual(totals.total_wagered, bets)
        self.assertEqual(totals.total_won - totals.total_fees, net_wins)

    def test_totals_survive_log_cap(self):
        machine = make_machine([JACKPOT, NO_MATCH])
        machine.connect_wallet()
        # Each jackpot/no-match pair emits 4 transactions
        for _ in range(15):
            machine.place_bet(1)
            machine.resolve_pending()
            machine.place_bet(1)
            machine.resolve_pending()

        self.assertEqual(len(machine.transactions()), 50)
        totals = machine.totals()
        self.assertEqual(totals.spins, 30)
        self.assertEqual(totals.wins, 15)
        self.assertEqual(totals.total_wagered, Decimal("30"))
        self.assertEqual(totals.total_won, Decimal("750"))

    def test_snapshot(self):
        machine = make_machine([PARTIAL])
        snapshot = machine.snapshot()
        self.assertFalse(snapshot["wallet"]["connected"])
        self.assertEqual(snapshot["transactions"], [])

        machine.connect_wallet()
        machine.place_bet(10)
        machine.resolve_pending()
        snapshot = machine.snapshot()
        self.assertEqual(snapshot["wallet"]["balance"], 993.9)
        self.assertEqual(snapshot["fee_percent"], 2.5)
        self.assertEqual(snapshot["stats"]["total_fees"], 0.1)
        self.assertEqual([tx["kind"] for tx in snapshot["transactions"]], ["fee", "win", "bet"])

    def test_custom_starting_balance(self):
        machine = make_machine([NO_MATCH], starting_balance=20)
        machine.connect_wallet()
        with self.assertRaises(InsufficientFunds):
            machine.place_bet(21)


# ==================== Paced reveal ====================

PACED = SlotsConfig(reel_delays=[0.05, 0.1, 0.15], settle_delay=0.05)


@pytest.mark.asyncio
async def test_spin_reports_each_reel_then_settles():
    machine = make_machine([PARTIAL])
    machine.connect_wallet()
    events = []

    settlement = await machine.spin(10, events.append)

    assert [(e.index, e.symbol) for e in events] == list(enumerate(PARTIAL))
    assert all(e.spin_id == settlement.spin_id for e in events)
    assert settlement.balance == Decimal("993.9")
    assert not machine.spinning


@pytest.mark.asyncio
async def test_async_event_callbacks_are_awaited():
    machine = make_machine([JACKPOT], slots_config=PACED)
    machine.connect_wallet()
    seen = []

    async def on_event(event):
        await asyncio.sleep(0)
        seen.append(event.symbol)

    settlement = await machine.spin(10, on_event)
    assert seen == JACKPOT
    assert settlement.balance == Decimal("1477.5")


@pytest.mark.asyncio
async def test_disconnect_during_reveal_cancels_spin():
    machine = make_machine([JACKPOT], slots_config=PACED)
    machine.connect_wallet()
    events = []

    machine.place_bet(10)
    reveal = asyncio.create_task(machine.reveal_reels_and_resolve(events.append))
    await asyncio.sleep(0.01)
    machine.disconnect_wallet()

    assert await reveal is None
    assert events == []
    assert machine.wallet.balance == 0
    assert machine.wallet.state == WalletState.DISCONNECTED


@pytest.mark.asyncio
async def test_reconnect_during_reveal_does_not_credit_new_wallet():
    machine = make_machine([JACKPOT], slots_config=PACED)
    machine.connect_wallet()

    machine.place_bet(10)
    reveal = asyncio.create_task(machine.reveal_reels_and_resolve())
    await asyncio.sleep(0.12)
    machine.disconnect_wallet()
    machine.connect_wallet()

    assert await reveal is None
    assert machine.wallet.balance == Decimal("1000")
    assert machine.transactions() == []
    assert not machine.spinning


@pytest.mark.asyncio
async def test_bet_during_reveal_is_rejected():
    machine = make_machine([NO_MATCH], slots_config=PACED)
    machine.connect_wallet()

    spin = asyncio.create_task(machine.spin(10))
    await asyncio.sleep(0.01)
    with pytest.raises(SpinInProgress):
        machine.place_bet(10)
    assert machine.wallet.balance == Decimal("990")

    settlement = await spin
    assert settlement.balance == Decimal("990")


@pytest.mark.asyncio
async def test_concurrent_reveals_settle_once():
    machine = make_machine([JACKPOT], slots_config=PACED)
    machine.connect_wallet()
    machine.place_bet(10)

    first, second = await asyncio.gather(
        machine.reveal_reels_and_resolve(),
        machine.reveal_reels_and_resolve(),
    )
    settled = [s for s in (first, second) if s is not None]
    assert len(settled) == 1
    assert machine.wallet.balance == Decimal("1477.5")
    assert len(machine.transactions()) == 3


@pytest.mark.asyncio
async def test_failing_event_callback_still_settles_spin():
    machine = make_machine([JACKPOT], slots_config=PACED)
    machine.connect_wallet()

    def on_event(event):
        raise ConnectionResetError("client went away")

    with pytest.raises(ConnectionResetError):
        await machine.spin(10, on_event)

    assert not machine.spinning
    assert machine.pending is None
    assert machine.wallet.balance == Decimal("1477.5")
    assert [tx.kind for tx in machine.transactions()] == [
        TransactionKind.FEE, TransactionKind.WIN, TransactionKind.BET,
    ]
    machine.place_bet(10)
    assert machine.wallet.balance == Decimal("1467.5")


@pytest.mark.asyncio
async def test_cancelled_reveal_task_still_settles_spin():
    machine = make_machine([PARTIAL], slots_config=PACED)
    machine.connect_wallet()
    events = []

    spin = asyncio.create_task(machine.spin(10, events.append))
    await asyncio.sleep(0.07)
    spin.cancel()
    with pytest.raises(asyncio.CancelledError):
        await spin

    assert len(events) < 3
    assert machine.wallet.state == WalletState.IDLE
    assert machine.wallet.balance == Decimal("993.9")
    assert machine.totals().total_won == Decimal("4")

    settlement = await machine.spin(10)
    assert settlement.balance == Decimal("987.8")
