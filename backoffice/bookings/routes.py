# backoffice/bookings/routes.py

from flask import request
from flask_login import login_required, current_user

from backoffice.auth.decorators import roles_required
from backoffice.bookings import bp, limits
from backoffice.bookings.forms import BookingForm
from backoffice.exceptions import ValidationError
from backoffice.extensions import limiter
from backoffice.models import MeetingRoom
from backoffice.models.booking import BOOKING_STATUSES
from backoffice.utils import api_response, form_errors, local_today, parse_date, parse_time


@bp.route('/meeting-rooms')
@login_required
def list_rooms():
    query = MeetingRoom.query.filter_by(is_active=True)
    branch_id = request.args.get('branchId', type=int)
    if branch_id:
        query = query.filter_by(branch_id=branch_id)
    return api_response([room.to_dict() for room in query.order_by(MeetingRoom.name).all()])


@bp.route('/meeting-rooms/<int:room_id>/availability')
@login_required
def availability(room_id):
    room = limits.get_room(room_id)
    day = parse_date(request.args.get('date')) or local_today()
    return api_response({
        'roomId': room.id,
        'date': day.isoformat(),
        'slots': limits.available_slots(room, day) if room.is_active else [],
    })


@bp.route('/bookings', methods=['POST'])
@login_required
@roles_required('customer')
@limiter.limit("30 per hour")
def create_booking():
    form = BookingForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    booking = limits.create_booking(
        current_user,
        limits.get_room(form.room_id.data),
        form.date.data,
        parse_time(form.start_time.data, 'startTime'),
        parse_time(form.end_time.data, 'endTime'),
        form.purpose.data
    )
    return api_response(booking.to_dict(), 201)


@bp.route('/bookings')
@login_required
def list_bookings():
    """Own bookings; staff and above see everyone's (optionally one subject's)."""
    status = request.args.get('status')
    if status and status not in BOOKING_STATUSES:
        raise ValidationError('Invalid status')

    subject_id = current_user.id
    if current_user.is_staff_member():
        subject_id = request.args.get('subjectId', type=int)

    bookings = limits.list_bookings(
        subject_id=subject_id,
        day=parse_date(request.args.get('date')),
        status=status
    )
    return api_response([b.to_dict() for b in bookings])


@bp.route('/bookings/limits')
@login_required
def booking_limits():
    day = parse_date(request.args.get('date')) or local_today()
    return api_response(limits.usage(current_user, day))


@bp.route('/bookings/<int:booking_id>', methods=['DELETE'])
@login_required
def cancel_booking(booking_id):
    booking = limits.cancel_booking(booking_id, current_user)
    return api_response(booking.to_dict())
