import random
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from chainslots.core.slots import SYMBOLS


class TrueRNG:
    """
    Entropy source for the game. Defaults to `random.SystemRandom`
    (os.urandom); pass a seeded `random.Random` for reproducible sessions.
    """

    def __init__(self, generator: Optional[random.Random] = None):
        self._generator = generator if generator is not None else random.SystemRandom()

    @classmethod
    def seeded(cls, seed) -> "TrueRNG":
        return cls(random.Random(seed))

    def random_int(self, min_val: int, max_val: int) -> int:
        """Returns a random integer in the range [min_val, max_val] (inclusive)."""
        if min_val > max_val:
            raise ValueError("min_val must be less than or equal to max_val")
        return self._generator.randint(min_val, max_val)

    def random_choice(self, options: Sequence):
        """Returns a random element from a non-empty sequence."""
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[self.random_int(0, len(options) - 1)]

    def token_hex(self, nbytes: int) -> str:
        """Hex string of nbytes random bytes (2 * nbytes characters)."""
        return f"{self._generator.getrandbits(nbytes * 8):0{nbytes * 2}x}"


@runtime_checkable
class SymbolSource(Protocol):
    """Anything the slot machine can draw a full spin from."""

    def draw_reels(self, count: int = 3) -> List[str]:
        ...


class RandomSymbolSource:
    """Draws reel symbols uniformly from the fixed alphabet."""

    def __init__(self, rng: Optional[TrueRNG] = None, symbols: Sequence[str] = SYMBOLS):
        self.rng = rng if rng is not None else TrueRNG()
        self.symbols = tuple(symbols)

    def draw(self) -> str:
        return self.rng.random_choice(self.symbols)

    def draw_reels(self, count: int = 3) -> List[str]:
        return [self.draw() for _ in range(count)]
