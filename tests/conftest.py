"""Shared fixtures for the client ledger tests.

``app`` builds an application on an in-memory SQLite database with
foreign keys enforced and keeps an application context pushed for the
duration of the test.
``build_client`` and ``build_branch`` construct unsaved subtrees from
a compact description so tests can state their tree shape inline.
"""
from __future__ import annotations

import uuid

import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy import event

from ledger import create_app, db
from ledger.models import (
    Client,
    ClientBranch,
    ExternalWorker,
    Organization,
    OrganizationCar,
    OrganizationCredential,
    OrganizationLicense,
    OrganizationRecord,
    OrganizationWorker,
)

LEAF_FACTORIES = {
    "records": lambda i: OrganizationRecord(number=f"CR-{i}"),
    "licenses": lambda i: OrganizationLicense(number=f"LIC-{i}"),
    "workers": lambda i: OrganizationWorker(name=f"Worker {i}", residence_number=f"{i:010d}"),
    "cars": lambda i: OrganizationCar(plate_number=f"ABC {i:04d}", color="White", serial_number=f"SN-{i}"),
    "credentials": lambda i: OrganizationCredential(site_name="Portal", username=f"user{i}", password="secret"),
}


def _organization(shape: dict, index: int) -> Organization:
    organization = Organization(name=f"Organization {index}")
    for attribute, count in shape.items():
        for i in range(count):
            getattr(organization, attribute).append(LEAF_FACTORIES[attribute](i))
    return organization


def _branch(organizations=(), external_workers: int = 0, name: str = "Branch") -> ClientBranch:
    branch = ClientBranch(name=name)
    for index, shape in enumerate(organizations):
        branch.organizations.append(_organization(shape, index))
    for i in range(external_workers):
        branch.external_workers.append(ExternalWorker(name=f"{name} worker {i}", residence_number=f"B{i:09d}"))
    return branch


def _client(organizations=(), external_workers: int = 0, branches=(), name: str = "Acme Trading") -> Client:
    """Build a client.

    ``organizations`` is a list of leaf-count mappings such as
    ``{"licenses": 2}``; ``branches`` is a list of keyword mappings
    passed to the branch builder.
    """
    client = Client(name=name, email=f"{uuid.uuid4().hex}@example.com")
    for index, shape in enumerate(organizations):
        client.organizations.append(_organization(shape, index))
    for i in range(external_workers):
        client.external_workers.append(ExternalWorker(name=f"Worker {i}", residence_number=f"C{i:09d}"))
    for index, spec in enumerate(branches):
        client.branches.append(_branch(name=f"Branch {index}", **spec))
    return client


@pytest.fixture
def build_client():
    return _client


@pytest.fixture
def build_branch():
    return _branch


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite leaves foreign key enforcement off per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
        }
    )
    with app.app_context():
        event.listen(db.engine, "connect", _enable_foreign_keys)
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def saved_client(app, build_client):
    """Persist a client subtree and return it."""
    def _save(**shape) -> Client:
        client = build_client(**shape)
        db.session.add(client)
        db.session.commit()
        return client
    return _save


@pytest.fixture
def auth_headers(app):
    def _headers(role: str = "Admin") -> dict[str, str]:
        token = create_access_token(identity="user-1", additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
    return _headers
