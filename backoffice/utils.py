# backoffice/utils.py

from contextlib import contextmanager
from datetime import datetime, date

import pytz
from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from backoffice.extensions import db
from backoffice.exceptions import Conflict, ValidationError


def api_response(data=None, status=200):
    """Wrap a payload in the success envelope."""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def error_response(error, status):
    """Failure envelope for anything that is not a BackOfficeError."""
    return jsonify({'success': False, 'error': error}), status


@contextmanager
def atomic():
    """Run a read-validate-write cycle as one transaction.

    Commits on success and rolls back on any error. Lost updates detected by
    a version column, and unique-index races, surface as ``Conflict`` so the
    caller can retry the whole cycle.
    """
    try:
        yield db.session
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        current_app.logger.warning(f"Concurrent modification: {exc}")
        raise Conflict() from exc
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning(f"Integrity conflict: {exc.orig}")
        raise Conflict() from exc
    except Exception:
        db.session.rollback()
        raise


def app_timezone():
    return pytz.timezone(current_app.config.get('TIMEZONE', 'UTC'))


def format_timestamp(timestamp):
    """Convert a naive UTC timestamp to the configured timezone.

    Args:
        timestamp: naive UTC datetime object

    Returns:
        datetime: aware datetime in the application timezone
    """
    return pytz.utc.localize(timestamp).astimezone(app_timezone())


def local_now(now=None):
    """Current (or given naive UTC) time as a naive local datetime."""
    now = now or datetime.utcnow()
    return format_timestamp(now).replace(tzinfo=None)


def local_today(now=None):
    return local_now(now).date()


def parse_date(value, field='date'):
    """Parse a YYYY-MM-DD query/body value; None passes through."""
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD")


def parse_time(value, field='time'):
    """Parse an HH:MM value."""
    try:
        return datetime.strptime(value, '%H:%M').time()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: expected HH:MM")


def form_errors(form):
    """First error message plus the full per-field map."""
    errors = {name: messages for name, messages in form.errors.items()}
    first = next(iter(errors.values()), ['Invalid request'])[0]
    return ValidationError(first, errors=errors)
