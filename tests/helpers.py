"""Shared fixtures for the test suite."""

from itertools import cycle
from typing import Iterable, List, Sequence

from chainslots.config import SlotsConfig, WalletConfig
from chainslots.core.machine import SlotMachine
from chainslots.core.rng import TrueRNG

INSTANT = SlotsConfig(reel_delays=[0, 0, 0], settle_delay=0)


class ScriptedSymbolSource:
    """Returns pre-arranged reel triples, in order, forever."""

    def __init__(self, spins: Iterable[Sequence[str]]):
        self._spins = cycle([list(s) for s in spins])

    def draw(self) -> str:
        raise NotImplementedError("ScriptedSymbolSource only draws whole spins")

    def draw_reels(self, count: int = 3) -> List[str]:
        reels = next(self._spins)
        assert len(reels) == count
        return list(reels)


def make_machine(spins=None, slots_config=INSTANT, seed=1234, **wallet) -> SlotMachine:
    source = ScriptedSymbolSource(spins) if spins is not None else None
    return SlotMachine(
        slots_config=slots_config,
        wallet_config=WalletConfig(**wallet),
        rng=TrueRNG.seeded(seed),
        symbol_source=source,
    )
