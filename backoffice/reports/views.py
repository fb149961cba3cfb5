# backoffice/reports/views.py
"""Read-only dashboard aggregates.

Everything is recomputed from the source tables on each call; nothing here
writes or caches.
"""

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func

from backoffice.extensions import db
from backoffice.models import (
    InventoryItem, Location, StockLevel, StockMovement, TimeEntry, Transfer, User
)
from backoffice.models.inventory_item import CATEGORIES
from backoffice.models.time_entry import CHECKED_OUT


def _stock_by_item():
    """item_id -> {location_type -> quantity}"""
    rows = db.session.query(
        StockLevel.item_id, Location.location_type, func.sum(StockLevel.quantity)
    ).join(Location, StockLevel.location_id == Location.id)\
        .group_by(StockLevel.item_id, Location.location_type).all()

    totals = defaultdict(lambda: defaultdict(int))
    for item_id, location_type, quantity in rows:
        totals[item_id][location_type] += int(quantity or 0)
    return totals


def _in_transit_by_item():
    rows = db.session.query(Transfer.item_id, func.sum(Transfer.quantity))\
        .filter(Transfer.status == 'in_transit')\
        .group_by(Transfer.item_id).all()
    return {item_id: int(quantity or 0) for item_id, quantity in rows}


def _active_items():
    return InventoryItem.query.filter(InventoryItem.is_active.is_(True))\
        .order_by(InventoryItem.name).all()


def low_stock_report():
    """Active items whose available stock is strictly below their minimum."""
    stock = _stock_by_item()
    report = []
    for item in _active_items():
        available = sum(stock[item.id].values())
        if available < item.minimum_stock:
            report.append({
                'itemId': item.id,
                'name': item.name,
                'category': item.category,
                'available': available,
                'minimumStock': item.minimum_stock,
                'shortfall': item.minimum_stock - available,
                'level': item.check_stock_level(available),
            })
    return report


def category_totals():
    """Item count, units and value per category; every category is present."""
    stock = _stock_by_item()
    totals = {
        category: {'category': category, 'itemCount': 0, 'quantity': 0, 'value': Decimal('0')}
        for category in CATEGORIES
    }
    for item in _active_items():
        quantity = sum(stock[item.id].values())
        bucket = totals[item.category]
        bucket['itemCount'] += 1
        bucket['quantity'] += quantity
        bucket['value'] += (item.unit_price or Decimal('0')) * quantity

    for bucket in totals.values():
        bucket['value'] = float(bucket['value'].quantize(Decimal('0.01')))
    return list(totals.values())


def attendance_summary(start=None, end=None):
    """Total and average daily hours per subject over completed entries."""
    query = db.session.query(
        TimeEntry.user_id,
        func.coalesce(func.sum(TimeEntry.duration), 0),
        func.count(func.distinct(TimeEntry.date)),
        func.count(TimeEntry.id),
    ).filter(TimeEntry.status == CHECKED_OUT)
    if start:
        query = query.filter(TimeEntry.date >= start)
    if end:
        query = query.filter(TimeEntry.date <= end)
    rows = query.group_by(TimeEntry.user_id).all()

    users = {
        u.id: u for u in User.query.filter(User.id.in_([r[0] for r in rows])).all()
    } if rows else {}

    summary = []
    for user_id, minutes, days, count in rows:
        user = users.get(user_id)
        hours = round(int(minutes) / 60, 2)
        summary.append({
            'subjectId': user_id,
            'username': user.username if user else None,
            'fullName': user.full_name if user else None,
            'role': user.role if user else None,
            'totalHours': hours,
            'daysPresent': days,
            'entries': count,
            'averageHoursPerDay': round(hours / days, 2) if days else 0,
        })
    return sorted(summary, key=lambda row: row['totalHours'], reverse=True)


def inventory_report():
    """Per-item stock split by store room / branch plus in-transit."""
    stock = _stock_by_item()
    in_transit = _in_transit_by_item()
    last_moves = dict(
        db.session.query(StockMovement.item_id, func.max(StockMovement.performed_at))
        .group_by(StockMovement.item_id).all()
    )

    report = []
    for item in _active_items():
        by_type = stock[item.id]
        available = sum(by_type.values())
        last_movement = last_moves.get(item.id)
        report.append({
            'itemId': item.id,
            'name': item.name,
            'category': item.category,
            'unit': item.unit,
            'storeRoom': by_type.get('store_room', 0),
            'branches': by_type.get('branch_room', 0) + by_type.get('office', 0),
            'inTransit': in_transit.get(item.id, 0),
            'available': available,
            'total': available + in_transit.get(item.id, 0),
            'minimumStock': item.minimum_stock,
            'lowStock': available < item.minimum_stock,
            'lastMovement': last_movement.isoformat() if last_movement else None,
        })
    return report
