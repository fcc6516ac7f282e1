"""ChainSlots: a simulated three-reel slot machine with an in-memory wallet ledger."""

__version__ = "1.0.0"
