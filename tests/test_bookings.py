from datetime import date, datetime, time, timedelta

import pytest

from backoffice.bookings import limits
from backoffice.exceptions import (
    BusinessRuleError,
    DailyLimitExceeded,
    LimitExceeded,
    MonthlyLimitExceeded,
    PermissionDenied,
    SlotUnavailable,
    ValidationError,
)
from backoffice.extensions import db
from backoffice.models import Booking, MeetingRoom

from conftest import get_user

DAY = date(2030, 1, 15)
MORNING = datetime(2030, 1, 15, 8, 0)


def _room():
    return MeetingRoom.query.filter_by(name='Board Room').one()


def _book(start, end, user='customer', day=DAY, now=MORNING):
    return limits.create_booking(
        get_user(user), _room(), day, time(*start), time(*end), 'Team sync', now=now
    )


def test_policy_uses_config_and_package(ctx):
    policy = limits.BookingPolicy.for_subject(get_user('customer'))
    assert policy.daily_limit_minutes == 120
    assert policy.monthly_limit_minutes == 20 * 60
    assert policy.open_time == time(9, 0)
    assert policy.close_time == time(18, 0)

    with pytest.raises(AttributeError):
        policy.daily_limit_minutes = 600


def test_create_booking(ctx):
    booking = _book((10, 0), (11, 0))
    assert booking.status == 'Confirmed'
    assert booking.duration == 60
    assert booking.branch_id == _room().branch_id


def test_locked_account_cannot_book(ctx):
    with pytest.raises(PermissionDenied, match="locked or suspended"):
        _book((10, 0), (11, 0), user='locked')

    locked = get_user('locked')
    locked.account_status = 'suspended'
    db.session.commit()
    with pytest.raises(PermissionDenied):
        _book((10, 0), (11, 0), user='locked')

    assert Booking.query.count() == 0


def test_third_hour_exceeds_daily_cap(ctx):
    _book((9, 0), (10, 0))
    _book((11, 0), (12, 0))

    with pytest.raises(DailyLimitExceeded) as excinfo:
        _book((14, 0), (15, 0))

    assert isinstance(excinfo.value, LimitExceeded)
    assert excinfo.value.used == 120
    assert Booking.query.count() == 2


def test_cancelled_bookings_do_not_count(ctx):
    first = _book((9, 0), (11, 0))
    limits.cancel_booking(first.id, get_user('customer'))

    booking = _book((13, 0), (15, 0))
    assert booking.duration == 120


def test_monthly_cap_from_package(ctx):
    customer = get_user('customer')
    customer.package.monthly_hours_limit = 1
    db.session.commit()

    _book((9, 0), (10, 0))
    with pytest.raises(MonthlyLimitExceeded):
        _book((10, 0), (10, 30), day=DAY + timedelta(days=1))
    assert Booking.query.count() == 1


def test_monthly_cap_spans_calendar_months(ctx):
    customer = get_user('customer')
    customer.package.monthly_hours_limit = 2
    db.session.commit()

    _book((9, 0), (11, 0), day=date(2030, 1, 30))
    with pytest.raises(MonthlyLimitExceeded):
        _book((9, 0), (10, 0), day=date(2030, 2, 1))

    # 30 days after the first booking it drops out of the window
    booking = _book((9, 0), (10, 0), day=date(2030, 3, 1))
    assert booking.status == 'Confirmed'


def test_monthly_cap_counts_later_bookings(ctx):
    customer = get_user('customer')
    customer.package.monthly_hours_limit = 2
    db.session.commit()

    _book((9, 0), (11, 0), day=date(2030, 2, 10))
    with pytest.raises(MonthlyLimitExceeded):
        _book((9, 0), (10, 0), day=date(2030, 2, 1))

    assert limits.usage(customer, date(2030, 2, 1))['monthlyMinutes'] == 0
    assert limits.usage(customer, date(2030, 2, 10))['monthlyMinutes'] == 120


def test_package_caps_bookings_per_day(ctx):
    customer = get_user('customer')
    customer.package.max_bookings_per_day = 1
    db.session.commit()

    _book((9, 0), (9, 30))
    with pytest.raises(DailyLimitExceeded, match="Maximum 1 bookings per day"):
        _book((10, 0), (10, 30))


def test_overlapping_slot_rejected(ctx):
    _book((10, 0), (11, 0))

    with pytest.raises(SlotUnavailable):
        _book((10, 30), (11, 30), user='member')

    # Touching edges do not overlap
    booking = _book((11, 0), (11, 30), user='member')
    assert booking.start_time == time(11, 0)


def test_time_validation(ctx):
    with pytest.raises(ValidationError, match="End time must be after start time"):
        _book((11, 0), (10, 0))

    with pytest.raises(ValidationError, match="Bookings must be between"):
        _book((8, 0), (9, 0))

    with pytest.raises(ValidationError, match="past"):
        _book((9, 0), (10, 0), now=datetime(2030, 1, 15, 9, 30))

    room = _room()
    room.is_active = False
    db.session.commit()
    with pytest.raises(ValidationError, match="not available"):
        _book((10, 0), (11, 0))

    assert Booking.query.count() == 0


def test_available_slots_skip_past_and_booked(ctx):
    room = _room()
    assert len(limits.available_slots(room, DAY, now=MORNING)) == 18

    _book((14, 0), (15, 0))
    slots = limits.available_slots(room, DAY, now=datetime(2030, 1, 15, 12, 10))

    starts = [slot['startTime'] for slot in slots]
    assert starts[0] == '12:30'
    assert '14:00' not in starts
    assert '14:30' not in starts
    assert '15:00' in starts
    assert len(slots) == 9

    assert limits.available_slots(room, DAY, now=datetime(2030, 1, 16, 8, 0)) == []


def test_cancel_rules(ctx):
    booking = _book((10, 0), (11, 0))

    with pytest.raises(PermissionDenied):
        limits.cancel_booking(booking.id, get_user('member'))

    cancelled = limits.cancel_booking(booking.id, get_user('staff'))
    assert cancelled.status == 'Cancelled'

    with pytest.raises(BusinessRuleError):
        limits.cancel_booking(booking.id, get_user('customer'))


def test_complete_elapsed_bookings(ctx):
    early = _book((9, 0), (10, 0))
    late = _book((16, 0), (17, 0))

    assert limits.complete_elapsed_bookings(now=datetime(2030, 1, 15, 12, 0)) == 1
    assert db.session.get(Booking, early.id).status == 'Completed'
    assert db.session.get(Booking, late.id).status == 'Confirmed'


def test_usage(ctx):
    _book((9, 0), (10, 30))
    usage = limits.usage(get_user('customer'), DAY)

    assert usage['dailyMinutes'] == 90
    assert usage['dailyRemainingMinutes'] == 30
    assert usage['monthlyHours'] == 1.5
    assert usage['monthlyLimitHours'] == 20
    assert usage['bookingsToday'] == 1


def test_booking_endpoints(app, customer_client, staff_client):
    with app.app_context():
        room_id = _room().id
    day = (date.today() + timedelta(days=2)).isoformat()

    response = customer_client.post('/bookings', json={
        'roomId': room_id,
        'date': day,
        'startTime': '10:00',
        'endTime': '12:00',
        'purpose': 'Client pitch'
    })
    assert response.status_code == 201, response.get_json()
    booking = response.get_json()['data']
    assert booking['duration'] == 120

    response = customer_client.post('/bookings', json={
        'roomId': room_id,
        'date': day,
        'startTime': '13:00',
        'endTime': '13:30',
        'purpose': 'Follow-up'
    })
    assert response.status_code == 409
    assert response.get_json()['code'] == 'DAILY_LIMIT_EXCEEDED'

    response = customer_client.get(f'/bookings/limits?date={day}')
    assert response.get_json()['data']['dailyMinutes'] == 120

    response = customer_client.get(f'/meeting-rooms/{room_id}/availability?date={day}')
    starts = [s['startTime'] for s in response.get_json()['data']['slots']]
    assert '10:00' not in starts and '12:00' in starts

    response = staff_client.post('/bookings', json={
        'roomId': room_id, 'date': day, 'startTime': '15:00',
        'endTime': '16:00', 'purpose': 'x'
    })
    assert response.status_code == 403

    response = customer_client.delete(f"/bookings/{booking['id']}")
    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'Cancelled'

    response = staff_client.get('/bookings?status=Cancelled')
    assert len(response.get_json()['data']) == 1


def test_booking_form_validation(app, customer_client):
    with app.app_context():
        room_id = _room().id

    response = customer_client.post('/bookings', json={
        'roomId': room_id,
        'date': '2030-01-15',
        'startTime': '10am',
        'endTime': '11:00',
        'purpose': 'Sync'
    })
    assert response.status_code == 400
    assert response.get_json()['success'] is False

    response = customer_client.post('/bookings', json={'roomId': 999, 'date': '2030-01-15',
                                                       'startTime': '10:00', 'endTime': '11:00',
                                                       'purpose': 'Sync'})
    assert response.status_code == 404


def test_locked_account_booking_forbidden(app, login):
    with app.app_context():
        room_id = _room().id
    day = (date.today() + timedelta(days=2)).isoformat()

    response = login('locked').post('/bookings', json={
        'roomId': room_id,
        'date': day,
        'startTime': '10:00',
        'endTime': '11:00',
        'purpose': 'Sync'
    })
    assert response.status_code == 403
    assert response.get_json()['error'] == (
        'Your account is locked or suspended. Cannot book meeting rooms.'
    )

    with app.app_context():
        assert Booking.query.count() == 0
