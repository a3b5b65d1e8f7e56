# src/safeyak/db/transaction.py
"""Unit-of-work helper translating storage failures into domain errors."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safeyak.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, *, commit: bool = True) -> Iterator[Session]:
    """Run a block as one transaction.

    Commits on success (unless ``commit`` is False). Any failure rolls the
    whole block back, so nothing is left half-written; SQLAlchemy errors are
    re-raised as :class:`StorageUnavailable`.
    """
    try:
        yield db
        if commit:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage failure, transaction rolled back", exc_info=True)
        raise StorageUnavailable("Storage failure") from exc
    except Exception:
        db.rollback()
        raise
