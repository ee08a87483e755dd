# Overview: Unit-of-work boundary for every multi-statement mutation.

"""
Kouriten transaction invariants (authoritative)

- Every compound mutation (PO create/receive, sale create, pack change,
  stock edit) runs inside exactly one unit_of_work.
- Inside the block, services flush but never commit.
- Commit happens once on clean exit; any exception rolls back everything
  written in the block. Database errors surface as ShopErrors; programming
  errors propagate unchanged.
- Commit and rollback both end the session transaction, which returns the
  pooled connection. No retry on conflict: the caller resubmits.
"""

from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..validation import (
    ShopError,
    ConflictError,
    ReferentialIntegrityError,
    TransactionError,
)


def lock_for_update(query):
    """
    Row lock for read-then-write headers (PO, order) on server databases.

    SQLite drops the FOR UPDATE clause; its single writer lock covers the
    same window.
    """
    return query.with_for_update()


def translate_db_error(exc: SQLAlchemyError) -> ShopError:
    """Map driver errors onto the shop error taxonomy."""
    if isinstance(exc, IntegrityError):
        message = str(exc.orig) if exc.orig is not None else str(exc)
        if "FOREIGN KEY" in message.upper():
            return ReferentialIntegrityError(
                "Operation blocked by related records", details={"db_error": message}
            )
        return ConflictError(f"Duplicate or conflicting record: {message}")
    message = str(getattr(exc, "orig", None) or exc)
    return TransactionError(message)


@contextmanager
def unit_of_work(label: str):
    """
    Run a block of statements as one all-or-nothing unit.

        with unit_of_work("purchase_order.create") as session:
            session.add(po)
            ...

    Yields db.session. ShopErrors pass through, database errors are
    translated into the shop taxonomy, and anything else is logged with its
    traceback and re-raised unchanged.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except ShopError as exc:
        session.rollback()
        current_app.logger.warning("Rolled back %s: %s", label, exc.message)
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        translated = translate_db_error(exc)
        current_app.logger.warning("Rolled back %s: %s", label, translated.message)
        raise translated from exc
    except Exception:
        session.rollback()
        current_app.logger.exception("Rolled back %s after unexpected error", label)
        raise
