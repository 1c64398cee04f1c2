"""
Serialization schemas using Marshmallow for the client ledger.

Deletion reports are the only payload the lifecycle endpoints return.
The schema dumps them with snake_case keys; entity counts keep the
plural kind names used inside the report (``Clients``,
``OrganizationLicenses`` and so on).
"""

from __future__ import annotations

from marshmallow import Schema, fields

from .errors import ErrorKind


class DeletionReportSchema(Schema):
    """Schema for serialising ``DeletionReport`` objects."""

    success = fields.Boolean(required=True)
    error_message = fields.String(allow_none=True)
    error_kind = fields.Enum(ErrorKind, by_value=True, allow_none=True)
    error_code = fields.String(allow_none=True)
    deletion_type = fields.String()
    deleted_entities = fields.Dict(keys=fields.String(), values=fields.Integer())
    warnings = fields.List(fields.String())
    total_entities_affected = fields.Integer()
    deleted_at = fields.DateTime()
