"""Single-transaction commit for a cascade.

The traversal only touches in-memory objects. ``CommitCoordinator``
collects hard-delete removals in the order they are issued and
persists the whole cascade with one ``session.commit()``. If the
commit fails the session is rolled back, so either every change of a
cascade reaches the database or none does.
"""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledger.errors import PersistenceError

logger = logging.getLogger(__name__)


class CommitCoordinator:
    """Queue removals and commit a cascade atomically."""

    def __init__(self, session: Session) -> None:
        self.session = session
        # Removal instructions in issue order; children always precede parents
        self.removals: List[object] = []

    def remove(self, node) -> None:
        self.removals.append(node)
        self.session.delete(node)

    def commit(self) -> None:
        try:
            self.session.commit()
        except (StaleDataError, IntegrityError) as exc:
            self.discard()
            logger.warning("Cascade commit conflicted with a concurrent change: %s", exc)
            raise PersistenceError(
                "The records were changed by another operation; nothing was saved", conflict=True
            ) from exc
        except SQLAlchemyError as exc:
            self.discard()
            logger.error("Cascade commit failed: %s", exc)
            raise PersistenceError(f"Could not save changes: {exc}") from exc

    def discard(self) -> None:
        """Drop every pending change, including in-memory flag edits."""
        self.session.rollback()
        self.removals.clear()
