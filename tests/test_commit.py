"""Tests for the commit coordinator's error mapping."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ledger.errors import ErrorKind, PersistenceError
from ledger.services.commit import CommitCoordinator


def test_remove_records_order_and_deletes() -> None:
    session = MagicMock()
    coordinator = CommitCoordinator(session)

    coordinator.remove("worker")
    coordinator.remove("organization")

    assert coordinator.removals == ["worker", "organization"]
    assert [call.args[0] for call in session.delete.call_args_list] == ["worker", "organization"]


def test_commit_success() -> None:
    session = MagicMock()
    CommitCoordinator(session).commit()
    session.commit.assert_called_once_with()
    session.rollback.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [
        StaleDataError("expected to delete 1 row(s); 0 were matched"),
        IntegrityError("DELETE FROM organizations", {}, Exception("FOREIGN KEY constraint failed")),
    ],
)
def test_conflicts_roll_back_and_raise(error) -> None:
    session = MagicMock()
    session.commit.side_effect = error
    coordinator = CommitCoordinator(session)
    coordinator.remove("client")

    with pytest.raises(PersistenceError) as excinfo:
        coordinator.commit()

    assert excinfo.value.conflict is True
    assert excinfo.value.code == "CONFLICT"
    assert excinfo.value.kind is ErrorKind.PERSISTENCE_FAILURE
    session.rollback.assert_called_once_with()
    assert coordinator.removals == []


def test_database_failure_rolls_back_and_raises() -> None:
    session = MagicMock()
    session.commit.side_effect = OperationalError("COMMIT", {}, Exception("database is locked"))

    with pytest.raises(PersistenceError) as excinfo:
        CommitCoordinator(session).commit()

    assert excinfo.value.conflict is False
    assert excinfo.value.code == "PERSISTENCE_FAILURE"
    session.rollback.assert_called_once_with()
