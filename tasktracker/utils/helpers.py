"""Shared utility functions for services and blueprints.

parse_datetime:      ISO-8601 → aware UTC datetime (raises ValidationError)
parse_optional_int:  body/query value → int | None (raises ValidationError)
transaction:         unit-of-work context manager (commit or roll back)
parse_optional_text: free-text field → str | None (raises ValidationError)
round_half_up:       JS-style Math.round used for duration/hour aggregates
"""
import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, timezone

from tasktracker.core.exceptions import ValidationError
from tasktracker.models import db
from tasktracker.utils.errors import E

logger = logging.getLogger(__name__)


def parse_datetime(value, field):
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Accepts a trailing ``Z`` and plain dates (midnight UTC). Naive values are
    treated as UTC. Raises ValidationError on anything else.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError(
                f"{field} must be an ISO-8601 timestamp",
                details={field: "invalid"}, code=E.VALIDATION_INVALID,
            ) from exc
    else:
        raise ValidationError(f"{field} is required", details={field: "required"}, code=E.VALIDATION_REQUIRED)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_datetime(value, field):
    """Same as parse_datetime() but empty input yields None."""
    if value is None or value == "":
        return None
    return parse_datetime(value, field)


def parse_optional_int(value, field):
    """Coerce a body/query value to int; None/"" pass through as None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", details={field: "invalid"}, code=E.VALIDATION_INVALID)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field} must be an integer", details={field: "invalid"}, code=E.VALIDATION_INVALID,
        ) from exc


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def parse_optional_text(value, field):
    """Accept a string or None for free-text fields; anything else is a 400."""
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{field} must be a string", details={field: "invalid"}, code=E.VALIDATION_INVALID)


# ── Unit of work ─────────────────────────────────────────────────────────────

@contextmanager
def transaction():
    """Run a block as one unit of work: commit on success, roll back on failure.

    Usage::

        with transaction():
            db.session.add(task)
            db.session.flush()
            db.session.add_all(assignments)

    The app-level error handlers translate IntegrityError into 409/500
    responses, so callers never observe a half-applied unit of work.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.debug("Unit of work rolled back", exc_info=True)
        raise
