# backoffice/time_tracking/routes.py

from datetime import datetime

from flask import current_app, request
from flask_login import login_required, current_user

from backoffice.auth.decorators import roles_required
from backoffice.exceptions import NotFound, PermissionDenied, ValidationError
from backoffice.extensions import db, limiter
from backoffice.models import Location, User
from backoffice.time_tracking import bp, tracker
from backoffice.time_tracking.forms import CheckInForm
from backoffice.reports.exports import export_response
from backoffice.utils import api_response, form_errors, format_timestamp, parse_date


def _date_range():
    start = parse_date(request.args.get('startDate'), 'startDate')
    end = parse_date(request.args.get('endDate'), 'endDate')
    if start and end and start > end:
        raise ValidationError('startDate must not be after endDate')
    return start, end


def _subject():
    """The caller, or (for managers and admins) the user named by ``subjectId``."""
    subject_id = request.args.get('subjectId', type=int)
    if subject_id is None or subject_id == current_user.id:
        return current_user
    if not current_user.is_manager():
        raise PermissionDenied('You can only view your own time entries')
    subject = db.session.get(User, subject_id)
    if subject is None:
        raise NotFound('User not found')
    return subject


@bp.route('/checkin', methods=['POST'])
@login_required
@roles_required('staff', 'customer')
@limiter.limit("30 per hour")
def checkin():
    form = CheckInForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    branch = None
    if form.branch_id.data is not None:
        branch = db.session.get(Location, form.branch_id.data)
        if branch is None:
            raise NotFound('Branch not found')

    entry = tracker.check_in(current_user, notes=form.notes.data, branch=branch)
    return api_response(entry.to_dict(), 201)


@bp.route('/checkout', methods=['POST'])
@login_required
@roles_required('staff', 'customer')
@limiter.limit("30 per hour")
def checkout():
    entry = tracker.check_out(current_user)
    data = entry.to_dict()
    data['hours'] = round(entry.duration / 60, 2)
    return api_response(data)


@bp.route('')
@login_required
def list_entries():
    subject = _subject()
    start, end = _date_range()
    return api_response({
        'subjectId': subject.id,
        'entries': [e.to_dict() for e in tracker.entries(subject.id, start, end)],
        'stats': tracker.time_stats(subject.id, start, end),
    })


@bp.route('/status')
@login_required
def status():
    return api_response({
        'subjectId': current_user.id,
        'currentStatus': tracker.current_status(current_user.id),
    })


@bp.route('/export')
@login_required
@limiter.limit("10 per minute")
def export_entries():
    """CSV or XLSX of the subject's entries with a closing TOTAL HOURS row."""
    fmt = request.args.get('format', 'csv')
    if fmt not in ('csv', 'xlsx'):
        raise ValidationError(f"Format not supported: {fmt}")

    subject = _subject()
    start, end = _date_range()
    rows = tracker.entries(subject.id, start, end)

    data = []
    for entry in rows:
        check_out = (
            format_timestamp(entry.check_out_time).strftime('%H:%M')
            if entry.check_out_time else ''
        )
        data.append({
            'Date': entry.date.isoformat(),
            'Check In': format_timestamp(entry.check_in_time).strftime('%H:%M'),
            'Check Out': check_out,
            'Duration (min)': entry.duration if entry.duration is not None else '',
            'Hours': round(entry.duration / 60, 2) if entry.duration is not None else '',
            'Status': entry.status,
            'Notes': entry.notes or '',
        })
    data.append({
        'Date': 'TOTAL HOURS',
        'Check In': '',
        'Check Out': '',
        'Duration (min)': '',
        'Hours': tracker.total_hours(subject.id, start, end),
        'Status': '',
        'Notes': '',
    })

    timestamp = format_timestamp(datetime.utcnow()).strftime('%Y%m%d_%H%M%S')
    current_app.logger.info(
        f"Time entries of user {subject.id} exported as {fmt} by {current_user.username}"
    )
    return export_response(
        data, fmt, f"time_entries_{subject.username}_{timestamp}", title='Time Entries'
    )
