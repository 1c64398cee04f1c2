"""Lifecycle entry points for clients and client branches.

Each public function loads one subtree, runs the cascade with the
matching operation and, unless the operation is read-only, commits the
result as a single transaction. Failures never escape as exceptions:
they come back as a failed ``DeletionReport`` and any in-memory changes
are rolled back.

The functions use ``db.session`` by default; pass ``session`` to run
against another session.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger import db
from ledger.errors import ErrorKind, LedgerError
from ledger.services.cascade import (
    CascadeOperation,
    HardDeleteOperation,
    RestoreOperation,
    SoftDeleteOperation,
    ValidateOperation,
    traverse,
)
from ledger.services.commit import CommitCoordinator
from ledger.services.loader import SubtreeLoader
from ledger.services.report import DeletionReport, EntityKind

logger = logging.getLogger(__name__)


def run_lifecycle(
    kind: EntityKind,
    root_id: uuid.UUID,
    operation: CascadeOperation,
    loader,
    coordinator,
) -> DeletionReport:
    """Load, traverse and commit one subtree.

    ``loader`` needs a ``load(kind, root_id, include_soft_deleted)``
    method and ``coordinator`` needs ``commit()`` and ``discard()``.
    Every node is loaded, deleted ones included, so counts match what a
    cascade will actually touch.
    """
    deletion_type = operation.deletion_type
    logger.debug("%s requested for %s %s", deletion_type.value, kind.value, root_id)
    try:
        root = loader.load(kind, root_id, include_soft_deleted=True)
        report = traverse(root, kind, operation)
        if operation.mutates:
            coordinator.commit()
    except LedgerError as exc:
        coordinator.discard()
        logger.warning("%s of %s %s rejected: %s", deletion_type.value, kind.value, root_id, exc.message)
        return DeletionReport.failure(deletion_type, exc.kind, exc.message, exc.code)
    except SQLAlchemyError as exc:
        coordinator.discard()
        logger.error("%s of %s %s failed to load: %s", deletion_type.value, kind.value, root_id, exc)
        return DeletionReport.failure(
            deletion_type, ErrorKind.PERSISTENCE_FAILURE, f"Error during {deletion_type.value.lower()}: {exc}"
        )
    except Exception as exc:
        coordinator.discard()
        logger.exception("%s of %s %s failed", deletion_type.value, kind.value, root_id)
        return DeletionReport.failure(
            deletion_type, ErrorKind.INTERNAL_ERROR, f"Error during {deletion_type.value.lower()}: {exc}"
        )

    result = report.finalize()
    logger.info(
        "%s of %s %s affected %d entities",
        deletion_type.value, kind.value, root_id, result.total_entities_affected,
    )
    return result


def _run(kind: EntityKind, root_id: uuid.UUID, operation_factory, session: Optional[Session]) -> DeletionReport:
    session = session or db.session
    coordinator = CommitCoordinator(session)
    return run_lifecycle(kind, root_id, operation_factory(coordinator), SubtreeLoader(session), coordinator)


def validate_deletion(client_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    """Report what deleting a client would affect, without changing anything."""
    return _run(EntityKind.CLIENT, client_id, lambda _: ValidateOperation(), session)


def soft_delete_client(client_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    """Soft delete a client, its branches and everything they own."""
    return _run(EntityKind.CLIENT, client_id, lambda _: SoftDeleteOperation(), session)


def restore_client(client_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    """Restore a soft-deleted client and its whole subtree."""
    return _run(EntityKind.CLIENT, client_id, lambda _: RestoreOperation(), session)


def hard_delete_client(client_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    """Permanently remove a client and its whole subtree. Cannot be undone."""
    return _run(EntityKind.CLIENT, client_id, lambda c: HardDeleteOperation(c.remove), session)


def validate_branch_deletion(branch_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    return _run(EntityKind.CLIENT_BRANCH, branch_id, lambda _: ValidateOperation(), session)


def soft_delete_branch(branch_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    return _run(EntityKind.CLIENT_BRANCH, branch_id, lambda _: SoftDeleteOperation(), session)


def restore_branch(branch_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    return _run(EntityKind.CLIENT_BRANCH, branch_id, lambda _: RestoreOperation(), session)


def hard_delete_branch(branch_id: uuid.UUID, session: Optional[Session] = None) -> DeletionReport:
    return _run(EntityKind.CLIENT_BRANCH, branch_id, lambda c: HardDeleteOperation(c.remove), session)
