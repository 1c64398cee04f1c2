"""Load a client or branch together with everything it owns.

The lifecycle operations walk the whole subtree in memory, so every
collection is eager-loaded up front with ``selectinload``. On the
normal path soft-deleted rows are hidden at every level with
``with_loader_criteria``; operations that must see deleted rows (such
as restore) ask for them explicitly.
"""
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, with_loader_criteria

from ledger.models import Client, ClientBranch, Organization, SoftDeleteMixin
from ledger.services.report import EntityKind


def _organization_options():
    return (
        selectinload(Organization.records),
        selectinload(Organization.licenses),
        selectinload(Organization.workers),
        selectinload(Organization.cars),
        selectinload(Organization.credentials),
    )


class SubtreeLoader:
    """Eager-load ownership subtrees through a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, kind: EntityKind, root_id: uuid.UUID, include_soft_deleted: bool):
        if kind is EntityKind.CLIENT:
            return self.load_client_subtree(root_id, include_soft_deleted)
        if kind is EntityKind.CLIENT_BRANCH:
            return self.load_branch_subtree(root_id, include_soft_deleted)
        raise ValueError(f"{kind} cannot be the root of a subtree")

    def load_client_subtree(self, client_id: uuid.UUID, include_soft_deleted: bool = False) -> Optional[Client]:
        stmt = select(Client).where(Client.id == client_id).options(
            selectinload(Client.organizations).options(*_organization_options()),
            selectinload(Client.external_workers),
            selectinload(Client.branches).options(
                selectinload(ClientBranch.organizations).options(*_organization_options()),
                selectinload(ClientBranch.external_workers),
            ),
        )
        return self._first(stmt, include_soft_deleted)

    def load_branch_subtree(
        self, branch_id: uuid.UUID, include_soft_deleted: bool = False
    ) -> Optional[ClientBranch]:
        stmt = select(ClientBranch).where(ClientBranch.id == branch_id).options(
            selectinload(ClientBranch.parent_client),
            selectinload(ClientBranch.organizations).options(*_organization_options()),
            selectinload(ClientBranch.external_workers),
        )
        return self._first(stmt, include_soft_deleted)

    def _first(self, stmt, include_soft_deleted: bool):
        if not include_soft_deleted:
            stmt = stmt.options(
                with_loader_criteria(
                    SoftDeleteMixin, lambda cls: cls.is_deleted.is_(False), include_aliases=True
                )
            )
        # Refresh collections that may already sit in the identity map
        stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()
