# backoffice/reports/routes.py

from datetime import datetime

from flask import current_app, request
from flask_login import login_required, current_user

from backoffice.auth.decorators import manager_required
from backoffice.exceptions import ValidationError
from backoffice.extensions import limiter
from backoffice.reports import bp, views
from backoffice.reports.exports import export_response
from backoffice.utils import api_response, format_timestamp, parse_date


@bp.route('/low-stock')
@login_required
@manager_required
def low_stock():
    return api_response(views.low_stock_report())


@bp.route('/categories')
@login_required
@manager_required
def categories():
    return api_response(views.category_totals())


@bp.route('/inventory')
@login_required
@manager_required
def inventory():
    return api_response(views.inventory_report())


@bp.route('/attendance')
@login_required
@manager_required
def attendance():
    start = parse_date(request.args.get('startDate'), 'startDate')
    end = parse_date(request.args.get('endDate'), 'endDate')
    if start and end and start > end:
        raise ValidationError('startDate must not be after endDate')
    return api_response(views.attendance_summary(start, end))


@bp.route('/inventory/export/<fmt>')
@login_required
@manager_required
@limiter.limit("5 per minute")
def export_inventory(fmt):
    """Inventory report as xlsx, pdf or docx."""
    if fmt not in ('xlsx', 'pdf', 'docx'):
        raise ValidationError(f"Format not supported: {fmt}")

    data = [{
        'Item': row['name'],
        'Category': row['category'],
        'Unit': row['unit'],
        'Store Room': row['storeRoom'],
        'Branches': row['branches'],
        'In Transit': row['inTransit'],
        'Available': row['available'],
        'Min Stock': row['minimumStock'],
        'Low Stock': 'Yes' if row['lowStock'] else '',
    } for row in views.inventory_report()]

    timestamp = format_timestamp(datetime.utcnow()).strftime('%Y%m%d_%H%M%S')
    current_app.logger.info(f"Inventory report exported as {fmt} by {current_user.username}")
    return export_response(data, fmt, f"inventory_{timestamp}", title='Inventory Report')
