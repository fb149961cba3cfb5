# backoffice/time_tracking/tracker.py
"""Check-in / check-out bookkeeping for staff and customers.

A subject's "current status" is not stored anywhere: it is always derived
from their most recent TimeEntry, so it cannot drift from the entries.
"""

import logging
import math
from datetime import datetime

from backoffice.extensions import db
from backoffice.exceptions import AlreadyCheckedIn, NoOpenEntry, PermissionDenied
from backoffice.models import TimeEntry
from backoffice.models.time_entry import CHECKED_IN, CHECKED_OUT
from backoffice.utils import atomic, local_today

logger = logging.getLogger(__name__)

NEVER = 'Never'


def open_entry(subject_id):
    return TimeEntry.query.filter_by(user_id=subject_id, status=CHECKED_IN).first()


def check_in(subject, notes=None, branch=None, now=None):
    """Open a new entry for the subject.

    Raises:
        PermissionDenied: locked or suspended account
        AlreadyCheckedIn: the subject already has an open entry
    """
    if subject.is_locked():
        raise PermissionDenied(
            'Your account is locked or suspended. Cannot check in.'
        )

    now = now or datetime.utcnow()
    with atomic():
        if open_entry(subject.id) is not None:
            raise AlreadyCheckedIn()
        entry = TimeEntry(
            user_id=subject.id,
            branch_id=branch.id if branch else subject.branch_id,
            check_in_time=now,
            date=local_today(now),
            status=CHECKED_IN,
            notes=notes or ''
        )
        db.session.add(entry)

    logger.info("User %s checked in (entry %s)", subject.id, entry.id)
    return entry


def check_out(subject, now=None):
    """Close the subject's open entry and record its duration in whole minutes.

    Raises:
        NoOpenEntry: nothing to close
    """
    now = now or datetime.utcnow()
    with atomic():
        entry = TimeEntry.query.filter_by(user_id=subject.id, status=CHECKED_IN)\
            .with_for_update().first()
        if entry is None:
            raise NoOpenEntry()
        elapsed = (now - entry.check_in_time).total_seconds()
        entry.check_out_time = now
        entry.duration = max(0, math.floor(elapsed / 60))
        entry.status = CHECKED_OUT

    logger.info("User %s checked out after %d minutes", subject.id, entry.duration)
    return entry


def entries(subject_id, start=None, end=None):
    """Entries of a subject, newest first, optionally limited to a date range."""
    query = TimeEntry.query.filter(TimeEntry.user_id == subject_id)
    if start:
        query = query.filter(TimeEntry.date >= start)
    if end:
        query = query.filter(TimeEntry.date <= end)
    return query.order_by(TimeEntry.check_in_time.desc(), TimeEntry.id.desc()).all()


def _hours(minutes):
    return round(minutes / 60, 2)


def total_hours(subject_id, start=None, end=None):
    """Hours of completed entries in the range, to two decimals."""
    return _hours(sum(
        e.duration or 0 for e in entries(subject_id, start, end)
        if e.status == CHECKED_OUT
    ))


def average_hours_per_day(subject_id, start=None, end=None):
    rows = entries(subject_id, start, end)
    days = len({e.date for e in rows})
    if not days:
        return 0
    return round(total_hours(subject_id, start, end) / days, 2)


def current_status(subject_id):
    """Status of the most recently created entry, or 'Never'."""
    latest = TimeEntry.query.filter_by(user_id=subject_id)\
        .order_by(TimeEntry.id.desc())\
        .first()
    return latest.status if latest else NEVER


def time_stats(subject_id, start=None, end=None, now=None):
    rows = entries(subject_id, start, end)
    completed = [e for e in rows if e.status == CHECKED_OUT]
    total_minutes = sum(e.duration or 0 for e in completed)
    days = len({e.date for e in rows})
    today = local_today(now)
    today_minutes = sum(e.duration or 0 for e in completed if e.date == today)

    hours = _hours(total_minutes)
    return {
        'totalHours': hours,
        'totalDays': days,
        'averageHoursPerDay': round(hours / days, 2) if days else 0,
        'totalEntries': len(rows),
        'completedEntries': len(completed),
        'currentStatus': current_status(subject_id),
        'todayHours': _hours(today_minutes),
    }
