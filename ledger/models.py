"""
Database models for the client ledger.

The schema is a strict ownership tree. A ``Client`` owns organizations,
external workers and branches; a ``ClientBranch`` owns organizations and
external workers of its own; an ``Organization`` owns five leaf
collections (records, licenses, workers, cars and credentials).

Organizations and external workers belong to exactly one of a client or
a branch. The two nullable owner columns are guarded by a check
constraint, and the ``owner`` property exposes them as a single
``Owner`` value so callers never juggle both columns by hand.

Every entity is soft-deletable. ``is_deleted`` and ``deleted_at`` are
changed together through ``mark_deleted`` and ``mark_restored``, and a
per-table check constraint rejects rows where the two disagree.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from . import db


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ClientClassification(enum.Enum):
    """Commercial classification shared by clients and branches."""
    DISTINGUISHED = "distinguished"
    REGULAR = "regular"
    PERIODIC = "periodic"


class WorkerType(enum.Enum):
    """Kinds of externally sponsored workers."""
    HOUSEHOLD_WORKER = "household_worker"
    HOME_COOK = "home_cook"
    PRIVATE_DRIVER = "private_driver"
    FARMER = "farmer"
    SHEPHERD = "shepherd"
    BEEKEEPER = "beekeeper"


class OwnerKind(enum.Enum):
    CLIENT = "client"
    BRANCH = "branch"


@dataclass(frozen=True)
class Owner:
    """The single parent of an organization or external worker."""

    kind: OwnerKind
    id: uuid.UUID

    @classmethod
    def client(cls, client_id: uuid.UUID) -> Owner:
        return cls(OwnerKind.CLIENT, client_id)

    @classmethod
    def branch(cls, branch_id: uuid.UUID) -> Owner:
        return cls(OwnerKind.BRANCH, branch_id)


class SoftDeleteMixin:
    """Columns and helpers shared by every soft-deletable entity."""

    # Soft delete flag and timestamp; deleted_at is set iff is_deleted is true
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("is_deleted", False)
        super().__init__(**kwargs)

    def mark_deleted(self, when: datetime) -> None:
        self.is_deleted = True
        self.deleted_at = when

    def mark_restored(self) -> None:
        self.is_deleted = False
        self.deleted_at = None


def deleted_flag_check(table_name: str) -> db.CheckConstraint:
    """Check constraint pairing ``deleted_at`` with ``is_deleted`` on ``table_name``."""
    return db.CheckConstraint(
        "(is_deleted AND deleted_at IS NOT NULL) OR (NOT is_deleted AND deleted_at IS NULL)",
        name=f"ck_{table_name}_deleted_at_matches_flag",
    )


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ClientOrBranchOwnedMixin:
    """Expose the ``client_id``/``client_branch_id`` pair as one ``Owner``.

    Subclasses declare both foreign key columns and the ``client`` and
    ``branch`` relationships. Both relationships cascade
    ``delete-orphan``, so subclasses map with ``legacy_is_orphan`` and a row
    only counts as an orphan once it has neither owner.
    """

    @property
    def owner(self) -> Optional[Owner]:
        client_id = self.client_id if self.client_id is not None else getattr(self.client, "id", None)
        branch_id = (
            self.client_branch_id if self.client_branch_id is not None else getattr(self.branch, "id", None)
        )
        if client_id is not None and branch_id is not None:
            raise ValueError(f"{self!r} is owned by both a client and a branch")
        if client_id is not None:
            return Owner.client(client_id)
        if branch_id is not None:
            return Owner.branch(branch_id)
        return None

    @owner.setter
    def owner(self, value: Owner) -> None:
        """Move the row to another owner, keeping it in the owner's collection."""
        if value.kind is OwnerKind.CLIENT:
            parent = db.session.get(Client, value.id)
        else:
            parent = db.session.get(ClientBranch, value.id)
        if parent is None:
            raise ValueError(f"No {value.kind.value} with id {value.id}")
        # Attach to the new parent before leaving the old one
        if value.kind is OwnerKind.CLIENT:
            self.client = parent
            self.client_id = value.id
            self.branch = None
            self.client_branch_id = None
        else:
            self.branch = parent
            self.client_branch_id = value.id
            self.client = None
            self.client_id = None


class Client(SoftDeleteMixin, TimestampMixin, db.Model):
    """Root of the ownership tree."""
    __allow_unmapped__ = True
    __tablename__ = "clients"
    __table_args__ = (deleted_flag_check("clients"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    name: str = db.Column(db.String(255), nullable=False)
    email: str = db.Column(db.String(255), unique=True, nullable=False)
    phone_number: Optional[str] = db.Column(db.String(20))
    classification: ClientClassification = db.Column(
        db.Enum(ClientClassification), default=ClientClassification.REGULAR, nullable=False
    )
    balance = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    # Relationships
    organizations = db.relationship(
        "Organization", back_populates="client", cascade="all, delete-orphan"
    )
    external_workers = db.relationship(
        "ExternalWorker", back_populates="client", cascade="all, delete-orphan"
    )
    branches = db.relationship(
        "ClientBranch", back_populates="parent_client", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Client {self.name}>"


class ClientBranch(SoftDeleteMixin, TimestampMixin, db.Model):
    """A branch of a client; owns organizations and workers like a client does."""
    __allow_unmapped__ = True
    __tablename__ = "client_branches"
    __table_args__ = (deleted_flag_check("client_branches"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    parent_client_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("clients.id"), nullable=False)
    name: str = db.Column(db.String(255), nullable=False)
    email: Optional[str] = db.Column(db.String(255))
    phone_number: Optional[str] = db.Column(db.String(20))
    classification: ClientClassification = db.Column(
        db.Enum(ClientClassification), default=ClientClassification.REGULAR, nullable=False
    )
    balance = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    branch_type: Optional[str] = db.Column(db.String(100))

    # Relationships
    parent_client = db.relationship("Client", back_populates="branches")
    organizations = db.relationship(
        "Organization", back_populates="branch", cascade="all, delete-orphan"
    )
    external_workers = db.relationship(
        "ExternalWorker", back_populates="branch", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ClientBranch {self.name}>"


class Organization(ClientOrBranchOwnedMixin, SoftDeleteMixin, TimestampMixin, db.Model):
    """An organization owned by either a client or one of its branches."""
    __allow_unmapped__ = True
    __tablename__ = "organizations"

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    name: str = db.Column(db.String(255), nullable=False)
    card_expiring_soon: bool = db.Column(db.Boolean, nullable=False, default=False)
    client_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("clients.id"))
    client_branch_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("client_branches.id"))

    # Relationships
    client = db.relationship("Client", back_populates="organizations")
    branch = db.relationship("ClientBranch", back_populates="organizations")
    records = db.relationship(
        "OrganizationRecord", back_populates="organization", cascade="all, delete-orphan"
    )
    licenses = db.relationship(
        "OrganizationLicense", back_populates="organization", cascade="all, delete-orphan"
    )
    workers = db.relationship(
        "OrganizationWorker", back_populates="organization", cascade="all, delete-orphan"
    )
    cars = db.relationship(
        "OrganizationCar", back_populates="organization", cascade="all, delete-orphan"
    )
    credentials = db.relationship(
        "OrganizationCredential", back_populates="organization", cascade="all, delete-orphan"
    )

    # Exactly one owner
    __table_args__ = (
        db.CheckConstraint(
            "(client_id IS NULL) <> (client_branch_id IS NULL)", name="ck_organizations_single_owner"
        ),
        deleted_flag_check("organizations"),
    )
    __mapper_args__ = {"legacy_is_orphan": True}

    def __repr__(self) -> str:
        return f"<Organization {self.name}>"


class OrganizationRecord(SoftDeleteMixin, TimestampMixin, db.Model):
    """Commercial registration record of an organization."""
    __allow_unmapped__ = True
    __tablename__ = "organization_records"
    __table_args__ = (deleted_flag_check("organization_records"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("organizations.id"), nullable=False)
    number: str = db.Column(db.String(100), nullable=False)
    expiry_date: Optional[datetime] = db.Column(db.DateTime)
    image_path: Optional[str] = db.Column(db.String(500))

    organization = db.relationship("Organization", back_populates="records")

    def __repr__(self) -> str:
        return f"<OrganizationRecord {self.number}>"


class OrganizationLicense(SoftDeleteMixin, TimestampMixin, db.Model):
    __allow_unmapped__ = True
    __tablename__ = "organization_licenses"
    __table_args__ = (deleted_flag_check("organization_licenses"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("organizations.id"), nullable=False)
    number: str = db.Column(db.String(100), nullable=False)
    expiry_date: Optional[datetime] = db.Column(db.DateTime)
    image_path: Optional[str] = db.Column(db.String(500))

    organization = db.relationship("Organization", back_populates="licenses")

    def __repr__(self) -> str:
        return f"<OrganizationLicense {self.number}>"


class OrganizationWorker(SoftDeleteMixin, TimestampMixin, db.Model):
    """A worker employed directly by an organization."""
    __allow_unmapped__ = True
    __tablename__ = "organization_workers"
    __table_args__ = (deleted_flag_check("organization_workers"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("organizations.id"), nullable=False)
    name: str = db.Column(db.String(255), nullable=False)
    residence_number: str = db.Column(db.String(50), nullable=False)
    residence_image_path: Optional[str] = db.Column(db.String(500))
    expiry_date: Optional[datetime] = db.Column(db.DateTime)

    organization = db.relationship("Organization", back_populates="workers")

    def __repr__(self) -> str:
        return f"<OrganizationWorker {self.name}>"


class OrganizationCar(SoftDeleteMixin, TimestampMixin, db.Model):
    __allow_unmapped__ = True
    __tablename__ = "organization_cars"
    __table_args__ = (deleted_flag_check("organization_cars"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("organizations.id"), nullable=False)
    plate_number: str = db.Column(db.String(20), nullable=False)
    color: str = db.Column(db.String(50), nullable=False)
    serial_number: str = db.Column(db.String(50), nullable=False)
    image_path: Optional[str] = db.Column(db.String(500))
    operating_card_expiry: Optional[datetime] = db.Column(db.DateTime)

    organization = db.relationship("Organization", back_populates="cars")

    def __repr__(self) -> str:
        return f"<OrganizationCar {self.plate_number}>"


class OrganizationCredential(SoftDeleteMixin, TimestampMixin, db.Model):
    """Login to a government or supplier portal held on behalf of an organization."""
    __allow_unmapped__ = True
    __tablename__ = "organization_credentials"
    __table_args__ = (deleted_flag_check("organization_credentials"),)

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("organizations.id"), nullable=False)
    site_name: str = db.Column(db.String(200), nullable=False)
    username: str = db.Column(db.String(255), nullable=False)
    password: str = db.Column(db.String(500), nullable=False)

    organization = db.relationship("Organization", back_populates="credentials")

    def __repr__(self) -> str:
        return f"<OrganizationCredential {self.site_name}>"


class ExternalWorker(ClientOrBranchOwnedMixin, SoftDeleteMixin, TimestampMixin, db.Model):
    """A sponsored worker owned by either a client or one of its branches."""
    __allow_unmapped__ = True
    __tablename__ = "external_workers"

    id: uuid.UUID = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    name: str = db.Column(db.String(255), nullable=False)
    residence_number: str = db.Column(db.String(50), nullable=False)
    residence_image_path: Optional[str] = db.Column(db.String(500))
    expiry_date: Optional[datetime] = db.Column(db.DateTime)
    worker_type: WorkerType = db.Column(db.Enum(WorkerType), nullable=False, default=WorkerType.HOUSEHOLD_WORKER)
    client_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("clients.id"))
    client_branch_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("client_branches.id"))

    # Relationships
    client = db.relationship("Client", back_populates="external_workers")
    branch = db.relationship("ClientBranch", back_populates="external_workers")

    __table_args__ = (
        db.CheckConstraint(
            "(client_id IS NULL) <> (client_branch_id IS NULL)", name="ck_external_workers_single_owner"
        ),
        deleted_flag_check("external_workers"),
    )
    __mapper_args__ = {"legacy_is_orphan": True}

    def __repr__(self) -> str:
        return f"<ExternalWorker {self.name}>"
