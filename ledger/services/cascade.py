"""Cascade traversal over a client or branch subtree.

A single walk visits every node of a loaded subtree in a fixed order:

1. the node itself,
2. its organizations, each followed by the organization's records,
   licenses, workers, cars and credentials,
3. its external workers,
4. for a client, each branch (which repeats steps 1-3 for itself).

After all descendants of a node have been visited, the operation's
``on_node_exit`` hook runs for that node, which gives hard deletes a
children-before-parent order for free.

What happens at each node is decided by a ``CascadeOperation``. The
four operations (validate, soft delete, restore, hard delete) differ
only in their per-node action; the walk is shared. Mutations are made
to the in-memory objects only. Persisting them is the caller's job.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ledger.errors import InvalidStateError, NotFoundError
from ledger.models import utcnow
from ledger.services.report import DeletionType, EntityKind, ReportBuilder

logger = logging.getLogger(__name__)

# Leaf collections of an organization, in visiting order
ORGANIZATION_LEAVES = (
    ("records", EntityKind.ORGANIZATION_RECORD),
    ("licenses", EntityKind.ORGANIZATION_LICENSE),
    ("workers", EntityKind.ORGANIZATION_WORKER),
    ("cars", EntityKind.ORGANIZATION_CAR),
    ("credentials", EntityKind.ORGANIZATION_CREDENTIAL),
)

ROOT_LABELS = {
    EntityKind.CLIENT: "client",
    EntityKind.CLIENT_BRANCH: "client branch",
}


class CascadeOperation:
    """Per-node behaviour plugged into ``traverse``.

    The default callbacks count the node and call ``apply``. Subclasses
    override ``apply`` to mutate a node, or individual callbacks when a
    node kind needs special handling.
    """

    deletion_type: DeletionType
    # Operations that change nothing never reach the commit step
    mutates = True

    def on_root_node(self, node, kind: EntityKind, report: ReportBuilder) -> None:
        self.visit(node, kind, report)

    def on_branch_node(self, branch, report: ReportBuilder) -> None:
        self.visit(branch, EntityKind.CLIENT_BRANCH, report)

    def on_organization_node(self, organization, report: ReportBuilder) -> None:
        self.visit(organization, EntityKind.ORGANIZATION, report)

    def on_leaf_node(self, leaf, kind: EntityKind, report: ReportBuilder) -> None:
        self.visit(leaf, kind, report)

    def on_worker_node(self, worker, report: ReportBuilder) -> None:
        self.visit(worker, EntityKind.EXTERNAL_WORKER, report)

    def on_node_exit(self, node, kind: EntityKind) -> None:
        """Called once every descendant of ``node`` has been visited."""

    def visit(self, node, kind: EntityKind, report: ReportBuilder) -> None:
        self.apply(node, kind)
        report.record(kind)

    def apply(self, node, kind: EntityKind) -> None:
        pass


class ValidateOperation(CascadeOperation):
    """Count what a delete would touch without changing anything."""

    deletion_type = DeletionType.VALIDATION
    mutates = False


class SoftDeleteOperation(CascadeOperation):
    """Flag every node as deleted with one shared timestamp.

    Nodes that are already deleted are stamped again rather than
    rejected.
    """

    deletion_type = DeletionType.SOFT_DELETE

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or utcnow()

    def apply(self, node, kind: EntityKind) -> None:
        node.mark_deleted(self.now)


class RestoreOperation(CascadeOperation):
    """Clear the deleted flag on every node of a previously deleted subtree.

    A branch cannot be restored while its parent client is still deleted.
    """

    deletion_type = DeletionType.RESTORE

    def on_root_node(self, node, kind: EntityKind, report: ReportBuilder) -> None:
        if not node.is_deleted:
            raise InvalidStateError(f"{ROOT_LABELS[kind].capitalize()} is not deleted")
        if kind is EntityKind.CLIENT_BRANCH and node.parent_client is not None and node.parent_client.is_deleted:
            raise InvalidStateError("Parent client is deleted; restore the client instead")
        super().on_root_node(node, kind, report)

    def apply(self, node, kind: EntityKind) -> None:
        node.mark_restored()


class HardDeleteOperation(CascadeOperation):
    """Hand every node to ``remove`` once its children have been handed over.

    ``remove`` is usually ``CommitCoordinator.remove``; nodes are counted
    on the way down and removed on the way back up.
    """

    deletion_type = DeletionType.HARD_DELETE

    def __init__(self, remove: Callable[[object], None]) -> None:
        self.remove = remove

    def on_node_exit(self, node, kind: EntityKind) -> None:
        self.remove(node)


class _Walk:
    """State for a single traversal."""

    def __init__(self, operation: CascadeOperation, report: ReportBuilder) -> None:
        self.operation = operation
        self.report = report
        self._seen: set[int] = set()

    def first_visit(self, node) -> bool:
        # An entity reachable through two owners is only visited once
        marker = id(node)
        if marker in self._seen:
            logger.warning("Skipping %r: already visited through another owner", node)
            return False
        self._seen.add(marker)
        return True

    def owned(self, owner) -> None:
        """Visit the organizations and external workers of a client or branch."""
        for organization in list(owner.organizations):
            self.organization(organization)
        for worker in list(owner.external_workers):
            if self.first_visit(worker):
                self.operation.on_worker_node(worker, self.report)
                self.operation.on_node_exit(worker, EntityKind.EXTERNAL_WORKER)

    def organization(self, organization) -> None:
        if not self.first_visit(organization):
            return
        self.operation.on_organization_node(organization, self.report)
        for attribute, kind in ORGANIZATION_LEAVES:
            for leaf in list(getattr(organization, attribute)):
                if self.first_visit(leaf):
                    self.operation.on_leaf_node(leaf, kind, self.report)
                    self.operation.on_node_exit(leaf, kind)
        self.operation.on_node_exit(organization, EntityKind.ORGANIZATION)

    def branch(self, branch) -> None:
        if not self.first_visit(branch):
            return
        self.operation.on_branch_node(branch, self.report)
        self.owned(branch)
        self.operation.on_node_exit(branch, EntityKind.CLIENT_BRANCH)


def _warn_direct_children(root, kind: EntityKind, report: ReportBuilder) -> None:
    label = ROOT_LABELS[kind]
    organizations = len(root.organizations)
    if organizations:
        report.warn(f"This {label} has {organizations} organization(s)")
    if kind is EntityKind.CLIENT:
        branches = len(root.branches)
        if branches:
            report.warn(f"This {label} has {branches} branch(es)")


def traverse(root, kind: EntityKind, operation: CascadeOperation,
             report: Optional[ReportBuilder] = None) -> ReportBuilder:
    """Apply ``operation`` to ``root`` and every node it owns.

    Parameters
    ----------
    root:
        A fully loaded ``Client`` or ``ClientBranch``, or ``None``.
    kind:
        ``EntityKind.CLIENT`` or ``EntityKind.CLIENT_BRANCH``.
    operation:
        The per-node behaviour to apply.
    report:
        Accumulator to record into; a new one is created when omitted.

    Returns
    -------
    ReportBuilder
        The accumulator, ready to be finalised once the caller has
        persisted the changes.

    Raises
    ------
    NotFoundError
        If ``root`` is ``None``.
    InvalidStateError
        If the operation rejects the root (restoring a live subtree).
    """
    if kind not in ROOT_LABELS:
        raise ValueError(f"{kind} cannot be the root of a cascade")
    if root is None:
        raise NotFoundError(f"{ROOT_LABELS[kind].capitalize()} not found")
    if report is None:
        report = ReportBuilder(operation.deletion_type)

    walk = _Walk(operation, report)
    walk.first_visit(root)
    operation.on_root_node(root, kind, report)
    _warn_direct_children(root, kind, report)
    walk.owned(root)
    if kind is EntityKind.CLIENT:
        for branch in list(root.branches):
            walk.branch(branch)
    operation.on_node_exit(root, kind)
    return report
