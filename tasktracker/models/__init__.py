"""
Task Tracker — shared SQLAlchemy instance.

Every model module imports ``db`` from here; the application factory binds
it to the app with ``db.init_app(app)``.
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def as_utc(value):
    """Attach UTC to naive datetimes read back from SQLite."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def iso(value):
    """Serialize a date/datetime for API responses (None passes through).

    Naive datetimes (SQLite drops the offset) are rendered as UTC.
    """
    if value is None:
        return None
    return as_utc(value).isoformat()
