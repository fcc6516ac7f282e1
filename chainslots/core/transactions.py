"""
Append-only transaction history, newest first, capped in length.
"""

import itertools
import uuid
from collections import deque
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

from chainslots.core.money import AmountLike, display, to_positive_amount
from chainslots.core.rng import TrueRNG

DEFAULT_HISTORY_LIMIT = 50


class TransactionKind(str, Enum):
    BET = "bet"
    WIN = "win"
    FEE = "fee"


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: TransactionKind
    amount: Decimal
    created_at: datetime
    reference: str
    sequence: int

    def short_reference(self) -> str:
        return f"{self.reference[:10]}...{self.reference[-8:]}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "amount": display(self.amount),
            "created_at": self.created_at.isoformat(),
            "reference": self.reference,
            "short_reference": self.short_reference(),
        }


class TransactionLog:
    """
    Holds the most recent `limit` transactions. Older entries are evicted
    silently; anything that needs the full history (session totals) must
    observe transactions as they are appended.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, rng: Optional[TrueRNG] = None):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.rng = rng if rng is not None else TrueRNG()
        self._entries = deque(maxlen=limit)
        self._sequence = itertools.count(1)

    def append(self, kind: TransactionKind, amount: AmountLike) -> Transaction:
        tx = Transaction(
            id=str(uuid.uuid4()),
            kind=TransactionKind(kind),
            amount=to_positive_amount(amount),
            created_at=datetime.now(timezone.utc),
            reference="0x" + self.rng.token_hex(32),
            sequence=next(self._sequence),
        )
        # deque(maxlen) drops from the right when full
        self._entries.appendleft(tx)
        return tx

    def entries(self) -> List[Transaction]:
        return list(self._entries)

    def latest(self) -> Optional[Transaction]:
        return self._entries[0] if self._entries else None

    def to_list(self) -> List[dict]:
        return [tx.to_dict() for tx in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._entries))
