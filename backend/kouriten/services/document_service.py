# Overview: Pluggable purchase-order number generation.

"""
PO number strategies

- SequencePoNumberGenerator (default): PO-YYYYMMDD-NNNN from a monotonic
  document_sequences row. The counter is global, the date is cosmetic, so
  numbers never collide.
- TimestampPoNumberGenerator: PO-<epoch ms>. Two orders created in the same
  millisecond collide.
- RandomSuffixPoNumberGenerator: PO-YYMMDD-XXXX with a random 4-digit
  suffix. Collides with probability ~n/10000 per day.

Whatever the strategy, purchase_orders.po_number is UNIQUE, so a collision
surfaces as ConflictError and the whole PO creation rolls back.
"""

from __future__ import annotations

import random
import time
from typing import Protocol

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence
from ..validation import ValidationError
from ..time_utils import today


class PoNumberGenerator(Protocol):
    def next_number(self) -> str:
        ...


def next_sequence_value(document_type: str) -> int:
    """
    Atomically allocate the next value of a named counter.

    Relative UPDATE first; the row is created lazily on first use. Runs in
    the caller's transaction so an aborted PO does not burn a number. Two
    transactions racing to create the row collide on the unique index and
    the loser gets ConflictError from its unit of work.
    """
    if not document_type:
        raise ValidationError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        db.session.add(DocumentSequence(document_type=document_type, next_number=2))
        db.session.flush()
        return 1

    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )
    return current - 1


class SequencePoNumberGenerator:
    def __init__(self, prefix: str = "PO", pad: int = 4):
        self.prefix = prefix
        self.pad = pad

    def next_number(self) -> str:
        value = next_sequence_value(self.prefix)
        return f"{self.prefix}-{today():%Y%m%d}-{value:0{self.pad}d}"


class TimestampPoNumberGenerator:
    def __init__(self, prefix: str = "PO"):
        self.prefix = prefix

    def next_number(self) -> str:
        return f"{self.prefix}-{int(time.time() * 1000)}"


class RandomSuffixPoNumberGenerator:
    def __init__(self, prefix: str = "PO", rng: random.Random | None = None):
        self.prefix = prefix
        self.rng = rng or random.Random()

    def next_number(self) -> str:
        return f"{self.prefix}-{today():%y%m%d}-{self.rng.randint(0, 9999):04d}"


STRATEGIES = {
    "sequence": SequencePoNumberGenerator,
    "timestamp": TimestampPoNumberGenerator,
    "random": RandomSuffixPoNumberGenerator,
}


def get_po_number_generator() -> PoNumberGenerator:
    """Generator selected by PO_NUMBER_STRATEGY (tests may override via app.extensions)."""
    override = current_app.extensions.get("po_number_generator")
    if override is not None:
        return override
    name = current_app.config.get("PO_NUMBER_STRATEGY", "sequence")
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValidationError(f"Unknown PO_NUMBER_STRATEGY: {name}")
