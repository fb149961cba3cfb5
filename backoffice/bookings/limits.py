# backoffice/bookings/limits.py
"""Meeting room booking rules.

``BookingPolicy`` is rebuilt from the app config and the subject's package on
every call; the functions here are the only place booking caps are enforced.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import func

from backoffice.extensions import db
from backoffice.exceptions import (
    BusinessRuleError,
    DailyLimitExceeded,
    MonthlyLimitExceeded,
    NotFound,
    PermissionDenied,
    SlotUnavailable,
    ValidationError,
)
from backoffice.models import Booking, MeetingRoom
from backoffice.utils import atomic, local_now, parse_time

logger = logging.getLogger(__name__)

CONFIRMED = 'Confirmed'
CANCELLED = 'Cancelled'
COMPLETED = 'Completed'

# Bookings that still count against a subject's allowance
COUNTED_STATUSES = (CONFIRMED, COMPLETED)

ROLLING_MONTH_DAYS = 30


@dataclass(frozen=True)
class BookingPolicy:
    daily_limit_minutes: int
    monthly_limit_minutes: int
    max_bookings_per_day: Optional[int]
    open_time: time
    close_time: time
    slot_minutes: int

    @classmethod
    def for_subject(cls, subject=None, config=None):
        """Policy from config, with the subject's package overriding the monthly cap."""
        config = config or current_app.config
        monthly_hours = config['BOOKING_MONTHLY_LIMIT_HOURS']
        max_per_day = config.get('BOOKING_MAX_PER_DAY')

        package = getattr(subject, 'package', None)
        if package is not None:
            monthly_hours = package.monthly_hours_limit
            if package.max_bookings_per_day:
                max_per_day = package.max_bookings_per_day

        return cls(
            daily_limit_minutes=config['BOOKING_DAILY_LIMIT_MINUTES'],
            monthly_limit_minutes=monthly_hours * 60,
            max_bookings_per_day=max_per_day,
            open_time=parse_time(config['BOOKING_OPEN_TIME'], 'BOOKING_OPEN_TIME'),
            close_time=parse_time(config['BOOKING_CLOSE_TIME'], 'BOOKING_CLOSE_TIME'),
            slot_minutes=config['BOOKING_SLOT_MINUTES'],
        )


def minutes_between(start, end):
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def _counted(subject_id):
    return Booking.query.filter(
        Booking.user_id == subject_id,
        Booking.status.in_(COUNTED_STATUSES)
    )


def daily_minutes(subject_id, day):
    return _counted(subject_id).filter(Booking.date == day)\
        .with_entities(func.coalesce(func.sum(Booking.duration), 0)).scalar()


def monthly_minutes(subject_id, day):
    """Minutes booked in the rolling month (30 days) ending on ``day``."""
    start = day - timedelta(days=ROLLING_MONTH_DAYS - 1)
    return _counted(subject_id)\
        .filter(Booking.date >= start, Booking.date <= day)\
        .with_entities(func.coalesce(func.sum(Booking.duration), 0)).scalar()


def busiest_month_minutes(subject_id, day):
    """Largest rolling-month total among the windows that contain ``day``.

    A new booking must fit every 30-day window it falls in.
    """
    span = timedelta(days=ROLLING_MONTH_DAYS - 1)
    rows = _counted(subject_id)\
        .filter(Booking.date >= day - span, Booking.date <= day + span)\
        .with_entities(Booking.date, Booking.duration).all()

    busiest = 0
    for offset in range(ROLLING_MONTH_DAYS):
        end = day + timedelta(days=offset)
        total = sum(duration for booked_on, duration in rows
                    if end - span <= booked_on <= end)
        busiest = max(busiest, total)
    return busiest


def bookings_on(subject_id, day):
    return _counted(subject_id).filter(Booking.date == day).count()


def usage(subject, day, policy=None):
    policy = policy or BookingPolicy.for_subject(subject)
    daily = daily_minutes(subject.id, day)
    monthly = monthly_minutes(subject.id, day)
    return {
        'date': day.isoformat(),
        'dailyMinutes': daily,
        'dailyLimitMinutes': policy.daily_limit_minutes,
        'dailyRemainingMinutes': max(0, policy.daily_limit_minutes - daily),
        'monthlyMinutes': monthly,
        'monthlyHours': round(monthly / 60, 2),
        'monthlyLimitHours': policy.monthly_limit_minutes // 60,
        'monthlyRemainingMinutes': max(0, policy.monthly_limit_minutes - monthly),
        'bookingsToday': bookings_on(subject.id, day),
        'maxBookingsPerDay': policy.max_bookings_per_day,
    }


def get_room(room_id):
    room = db.session.get(MeetingRoom, room_id)
    if room is None:
        raise NotFound('Meeting room not found')
    return room


def confirmed_in_room(room_id, day):
    return Booking.query.filter_by(room_id=room_id, date=day, status=CONFIRMED)\
        .order_by(Booking.start_time).all()


def check_limits(subject, day, duration, policy):
    """Raise if adding ``duration`` minutes on ``day`` would breach a cap."""
    daily = daily_minutes(subject.id, day)
    if daily + duration > policy.daily_limit_minutes:
        raise DailyLimitExceeded(
            f"Daily booking limit exceeded: {daily} of "
            f"{policy.daily_limit_minutes} minutes already booked",
            used=daily, requested=duration, limit=policy.daily_limit_minutes
        )

    if policy.max_bookings_per_day is not None:
        count = bookings_on(subject.id, day)
        if count >= policy.max_bookings_per_day:
            raise DailyLimitExceeded(
                f"Maximum {policy.max_bookings_per_day} bookings per day",
                used=count, requested=1, limit=policy.max_bookings_per_day
            )

    monthly = busiest_month_minutes(subject.id, day)
    if monthly + duration > policy.monthly_limit_minutes:
        raise MonthlyLimitExceeded(
            f"Monthly booking limit exceeded: {round(monthly / 60, 2)} of "
            f"{policy.monthly_limit_minutes // 60} hours already booked",
            used=monthly, requested=duration, limit=policy.monthly_limit_minutes
        )


def create_booking(subject, room, day, start_time, end_time, purpose, now=None):
    """Confirm a booking after checking time, slot and allowance.

    Raises:
        PermissionDenied: the subject's account is locked or suspended
        ValidationError: bad time range, past slot, inactive room
        SlotUnavailable: overlaps a confirmed booking in the room
        DailyLimitExceeded, MonthlyLimitExceeded: allowance used up
    """
    if subject.is_locked():
        raise PermissionDenied('Your account is locked or suspended. Cannot book meeting rooms.')

    policy = BookingPolicy.for_subject(subject)

    if end_time <= start_time:
        raise ValidationError('End time must be after start time')
    if start_time < policy.open_time or end_time > policy.close_time:
        raise ValidationError(
            f"Bookings must be between {policy.open_time.strftime('%H:%M')} "
            f"and {policy.close_time.strftime('%H:%M')}"
        )
    if datetime.combine(day, start_time) < local_now(now):
        raise ValidationError('Cannot book a time slot in the past')
    if not room.is_active:
        raise ValidationError('Meeting room is not available for booking')
    if not (purpose or '').strip():
        raise ValidationError('Purpose is required')

    duration = minutes_between(start_time, end_time)

    with atomic():
        # Serialises bookings per room on databases with row locks
        MeetingRoom.query.filter_by(id=room.id).with_for_update().one()

        for other in confirmed_in_room(room.id, day):
            if other.overlaps(start_time, end_time):
                raise SlotUnavailable()

        check_limits(subject, day, duration, policy)

        booking = Booking(
            room_id=room.id,
            user_id=subject.id,
            branch_id=room.branch_id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            status=CONFIRMED,
            purpose=purpose.strip()
        )
        db.session.add(booking)

    logger.info(
        "Booking %s: room %s on %s %s-%s for user %s",
        booking.id, room.id, day, start_time, end_time, subject.id
    )
    return booking


def cancel_booking(booking_id, actor):
    """Cancel a confirmed booking; owners and staff may cancel.

    Raises:
        NotFound, PermissionDenied, BusinessRuleError
    """
    with atomic():
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound('Booking not found')
        if booking.user_id != actor.id and not actor.is_staff_member():
            raise PermissionDenied('You can only cancel your own bookings')
        if booking.status != CONFIRMED:
            raise BusinessRuleError(
                f"Only confirmed bookings can be cancelled (booking is {booking.status})"
            )
        booking.status = CANCELLED

    logger.info("Booking %s cancelled by user %s", booking.id, actor.id)
    return booking


def available_slots(room, day, now=None, policy=None):
    """Free fixed-length slots of a room on ``day``.

    Slots that already started (today) and slots overlapping a confirmed
    booking are left out.
    """
    policy = policy or BookingPolicy.for_subject()
    current = local_now(now)
    taken = confirmed_in_room(room.id, day)

    slots = []
    cursor = datetime.combine(day, policy.open_time)
    close = datetime.combine(day, policy.close_time)
    step = timedelta(minutes=policy.slot_minutes)
    while cursor + step <= close:
        start, end = cursor.time(), (cursor + step).time()
        if cursor >= current and not any(b.overlaps(start, end) for b in taken):
            slots.append({
                'startTime': start.strftime('%H:%M'),
                'endTime': end.strftime('%H:%M'),
            })
        cursor += step
    return slots


def complete_elapsed_bookings(now=None):
    """Mark confirmed bookings whose end has passed as completed."""
    current = local_now(now)
    completed = 0
    with atomic():
        candidates = Booking.query.filter(
            Booking.status == CONFIRMED,
            Booking.date <= current.date()
        ).all()
        for booking in candidates:
            if datetime.combine(booking.date, booking.end_time) <= current:
                booking.status = COMPLETED
                completed += 1
    logger.info("Completed %d elapsed bookings", completed)
    return completed


def list_bookings(subject_id=None, day=None, status=None):
    query = Booking.query
    if subject_id is not None:
        query = query.filter(Booking.user_id == subject_id)
    if day is not None:
        query = query.filter(Booking.date == day)
    if status:
        query = query.filter(Booking.status == status)
    return query.order_by(Booking.date.desc(), Booking.start_time.desc()).all()