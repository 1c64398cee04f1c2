"""Deletion reports and the accumulator that builds them.

Every lifecycle operation returns a ``DeletionReport`` whether it
succeeded or not. A failed report has the same shape as a successful
one with ``success`` cleared and ``error_message``/``error_kind`` set,
so callers can handle both uniformly.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ledger.errors import ErrorKind
from ledger.models import utcnow


class EntityKind(enum.Enum):
    """Entity kinds in report order. Values are the report keys."""
    CLIENT = "Clients"
    CLIENT_BRANCH = "ClientBranches"
    ORGANIZATION = "Organizations"
    ORGANIZATION_RECORD = "OrganizationRecords"
    ORGANIZATION_LICENSE = "OrganizationLicenses"
    ORGANIZATION_WORKER = "OrganizationWorkers"
    ORGANIZATION_CAR = "OrganizationCars"
    ORGANIZATION_CREDENTIAL = "OrganizationCredentials"
    EXTERNAL_WORKER = "ExternalWorkers"


class DeletionType(enum.Enum):
    VALIDATION = "Validation"
    SOFT_DELETE = "Soft Delete"
    HARD_DELETE = "Hard Delete (Permanent)"
    RESTORE = "Restore"


@dataclass
class DeletionReport:
    """Outcome of a lifecycle operation."""

    success: bool
    deletion_type: str
    deleted_entities: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    total_entities_affected: int = 0
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_code: Optional[str] = None
    deleted_at: datetime = field(default_factory=utcnow)

    @classmethod
    def failure(cls, deletion_type: DeletionType, error_kind: ErrorKind, message: str,
                error_code: Optional[str] = None) -> DeletionReport:
        return cls(
            success=False,
            deletion_type=deletion_type.value,
            error_message=message,
            error_kind=error_kind,
            error_code=error_code or error_kind.name,
        )


class ReportBuilder:
    """Accumulate per-kind counts and warnings during a traversal.

    Counts roll up by kind regardless of where in the tree a node was
    found, so organizations owned by a client and by each of its
    branches all land in one ``Organizations`` bucket.
    """

    def __init__(self, deletion_type: DeletionType) -> None:
        self.deletion_type = deletion_type
        self._counts: Dict[EntityKind, int] = {kind: 0 for kind in EntityKind}
        self._warnings: List[str] = []

    def record(self, kind: EntityKind, delta: int = 1) -> None:
        if delta < 0:
            raise ValueError("report counts can only grow")
        self._counts[kind] += delta

    def warn(self, message: str) -> None:
        self._warnings.append(message)

    def count(self, kind: EntityKind) -> int:
        return self._counts[kind]

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def finalize(self) -> DeletionReport:
        """Build the successful report; kinds with no nodes are omitted."""
        deleted_entities = {kind.value: count for kind, count in self._counts.items() if count > 0}
        return DeletionReport(
            success=True,
            deletion_type=self.deletion_type.value,
            deleted_entities=deleted_entities,
            warnings=list(self._warnings),
            total_entities_affected=sum(deleted_entities.values()),
        )
