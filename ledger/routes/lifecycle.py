"""
Routes for deleting, restoring and previewing client subtrees.

Every endpoint is restricted to administrators (the role claim named by
``LEDGER_ADMIN_ROLE``). Handlers are thin: they call the lifecycle
service and serialise the returned report. A failed report is still
returned in full, with the status code chosen from its error kind.
"""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app
from flask_jwt_extended import jwt_required, get_jwt

from ..errors import ErrorKind
from ..schemas import DeletionReportSchema
from ..services import (
    DeletionReport,
    hard_delete_branch,
    hard_delete_client,
    restore_branch,
    restore_client,
    soft_delete_branch,
    soft_delete_client,
    validate_branch_deletion,
    validate_deletion,
)


lifecycle_bp = Blueprint("lifecycle", __name__)

FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.PERSISTENCE_FAILURE: 500,
    ErrorKind.INTERNAL_ERROR: 500,
}


def _is_admin() -> bool:
    """Helper to determine if the current user is an administrator."""
    return get_jwt().get("role") == current_app.config["LEDGER_ADMIN_ROLE"]


def _report_response(report: DeletionReport) -> tuple[dict, int]:
    status = 200
    if not report.success:
        status = FAILURE_STATUS.get(report.error_kind, 500)
        # Concurrent-change failures are persistence failures with their own code
        if report.error_code == "CONFLICT":
            status = 409
    return DeletionReportSchema().dump(report), status


@lifecycle_bp.route("/clients/<uuid:client_id>/deletion-preview", methods=["GET"])
@jwt_required()
def preview_client_deletion(client_id: uuid.UUID) -> tuple[dict, int]:
    """Show what deleting a client would affect without deleting anything."""
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(validate_deletion(client_id))


@lifecycle_bp.route("/clients/<uuid:client_id>", methods=["DELETE"])
@jwt_required()
def delete_client(client_id: uuid.UUID) -> tuple[dict, int]:
    """Soft delete a client together with its branches and all owned records."""
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(soft_delete_client(client_id))


@lifecycle_bp.route("/clients/<uuid:client_id>/restore", methods=["POST"])
@jwt_required()
def restore_deleted_client(client_id: uuid.UUID) -> tuple[dict, int]:
    """Restore a soft-deleted client. Returns 409 if it is not deleted."""
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(restore_client(client_id))


@lifecycle_bp.route("/clients/<uuid:client_id>/permanent", methods=["DELETE"])
@jwt_required()
def purge_client(client_id: uuid.UUID) -> tuple[dict, int]:
    """Permanently delete a client and everything it owns."""
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(hard_delete_client(client_id))


@lifecycle_bp.route("/branches/<uuid:branch_id>/deletion-preview", methods=["GET"])
@jwt_required()
def preview_branch_deletion(branch_id: uuid.UUID) -> tuple[dict, int]:
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(validate_branch_deletion(branch_id))


@lifecycle_bp.route("/branches/<uuid:branch_id>", methods=["DELETE"])
@jwt_required()
def delete_branch(branch_id: uuid.UUID) -> tuple[dict, int]:
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(soft_delete_branch(branch_id))


@lifecycle_bp.route("/branches/<uuid:branch_id>/restore", methods=["POST"])
@jwt_required()
def restore_deleted_branch(branch_id: uuid.UUID) -> tuple[dict, int]:
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(restore_branch(branch_id))


@lifecycle_bp.route("/branches/<uuid:branch_id>/permanent", methods=["DELETE"])
@jwt_required()
def purge_branch(branch_id: uuid.UUID) -> tuple[dict, int]:
    if not _is_admin():
        return {"error": "Forbidden"}, 403
    return _report_response(hard_delete_branch(branch_id))
