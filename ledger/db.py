"""Database setup utilities.

This module centralises the SQLAlchemy extension object used by the
ledger models and services. Import ``db`` from ``ledger`` rather than
from this module directly. The application factory initialises
``db`` with the Flask app.
"""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
