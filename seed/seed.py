"""Seed script for demo data.

Running this script populates the database with one demo client that
has a branch, organizations carrying every kind of sub-record, and
external workers at both levels, which is enough to try every
lifecycle endpoint. Run it with ``python -m seed.seed`` from the
repository root.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from ledger import create_app, db
from ledger.models import (
    Client,
    ClientBranch,
    ClientClassification,
    ExternalWorker,
    Organization,
    OrganizationCar,
    OrganizationCredential,
    OrganizationLicense,
    OrganizationRecord,
    OrganizationWorker,
    WorkerType,
    utcnow,
)


def _demo_organization(name: str, expiry: datetime) -> Organization:
    organization = Organization(name=name)
    organization.records.append(OrganizationRecord(number=f"CR-{name[:3].upper()}-001", expiry_date=expiry))
    organization.licenses.append(OrganizationLicense(number=f"LIC-{name[:3].upper()}-001", expiry_date=expiry))
    organization.workers.append(
        OrganizationWorker(name="Salem Ahmed", residence_number="2345678901", expiry_date=expiry)
    )
    organization.cars.append(
        OrganizationCar(plate_number="ABC 1234", color="White", serial_number="SN-778899",
                        operating_card_expiry=expiry)
    )
    organization.credentials.append(
        OrganizationCredential(site_name="Ministry portal", username=f"{name.lower().replace(' ', '.')}",
                               password="change-me")
    )
    return organization


def run_seeds() -> None:
    """Insert a demo client subtree into the database."""
    app = create_app()
    with app.app_context():
        db.create_all()
        expiry = utcnow() + timedelta(days=365)
        client = Client(
            name="Demo Trading Co.",
            email="demo.client@example.com",
            classification=ClientClassification.DISTINGUISHED,
        )
        client.organizations.append(_demo_organization("Demo Logistics", expiry))
        client.external_workers.append(
            ExternalWorker(name="Fatima Noor", residence_number="1122334455", expiry_date=expiry,
                           worker_type=WorkerType.HOME_COOK)
        )
        branch = ClientBranch(name="Demo Trading - Riyadh", branch_type="Regional office")
        branch.organizations.append(_demo_organization("Riyadh Services", expiry))
        branch.external_workers.append(
            ExternalWorker(name="Omar Khalid", residence_number="5566778899", expiry_date=expiry,
                           worker_type=WorkerType.PRIVATE_DRIVER)
        )
        client.branches.append(branch)
        db.session.add(client)
        db.session.commit()
        print(f"Seed data inserted successfully (client id {client.id}).")


if __name__ == "__main__":
    run_seeds()
