"""Service layer for the client ledger.

This package holds the lifecycle logic that sits between the Flask
route handlers and the database models: the cascade traversal, the
report accumulator, the subtree loader and the commit coordinator.

Nothing in this package performs HTTP handling. Services return
``DeletionReport`` objects and raise the exceptions defined in
``ledger.errors`` internally.
"""

from .lifecycle_service import (
    hard_delete_branch,
    hard_delete_client,
    restore_branch,
    restore_client,
    soft_delete_branch,
    soft_delete_client,
    validate_branch_deletion,
    validate_deletion,
)
from .report import DeletionReport, DeletionType, EntityKind

__all__ = [
    "DeletionReport",
    "DeletionType",
    "EntityKind",
    "hard_delete_branch",
    "hard_delete_client",
    "restore_branch",
    "restore_client",
    "soft_delete_branch",
    "soft_delete_client",
    "validate_branch_deletion",
    "validate_deletion",
]
