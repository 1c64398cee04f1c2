"""Tests for the deletion report accumulator."""
from __future__ import annotations

import pytest

from ledger.errors import ErrorKind
from ledger.services.report import DeletionReport, DeletionType, EntityKind, ReportBuilder


def test_finalize_omits_empty_kinds_and_totals_counts() -> None:
    builder = ReportBuilder(DeletionType.SOFT_DELETE)
    builder.record(EntityKind.EXTERNAL_WORKER, 2)
    builder.record(EntityKind.CLIENT)
    builder.record(EntityKind.ORGANIZATION, 0)

    report = builder.finalize()

    assert report.success is True
    assert report.deletion_type == "Soft Delete"
    assert report.deleted_entities == {"Clients": 1, "ExternalWorkers": 2}
    assert list(report.deleted_entities) == ["Clients", "ExternalWorkers"]
    assert report.total_entities_affected == 3
    assert builder.total == 3
    assert builder.count(EntityKind.ORGANIZATION) == 0


def test_counts_cannot_decrease() -> None:
    builder = ReportBuilder(DeletionType.VALIDATION)
    with pytest.raises(ValueError):
        builder.record(EntityKind.CLIENT, -1)


def test_warnings_keep_their_order() -> None:
    builder = ReportBuilder(DeletionType.VALIDATION)
    builder.warn("first")
    builder.warn("second")
    assert builder.finalize().warnings == ["first", "second"]


def test_failure_report_has_the_same_shape() -> None:
    report = DeletionReport.failure(DeletionType.RESTORE, ErrorKind.INVALID_STATE, "Client is not deleted")

    assert report.success is False
    assert report.deletion_type == "Restore"
    assert report.error_message == "Client is not deleted"
    assert report.error_kind is ErrorKind.INVALID_STATE
    assert report.error_code == "INVALID_STATE"
    assert report.deleted_entities == {}
    assert report.warnings == []
    assert report.total_entities_affected == 0
    assert report.deleted_at is not None
