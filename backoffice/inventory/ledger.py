# backoffice/inventory/ledger.py
"""Per-item stock bookkeeping across locations.

All writes go through :func:`adjust`, which must be called inside
:func:`backoffice.utils.atomic`. The row is read ``FOR UPDATE`` where the
database supports it, and the StockLevel version column catches any writer
that slipped past the lock.
"""

import logging
from datetime import datetime

from sqlalchemy import func

from backoffice.extensions import db
from backoffice.exceptions import InsufficientStock, NotFound, ValidationError
from backoffice.models import InventoryItem, Location, StockLevel, StockMovement, Transfer

logger = logging.getLogger(__name__)


def _locked_level(item_id, location_id):
    return StockLevel.query.filter_by(
        item_id=item_id,
        location_id=location_id
    ).with_for_update().first()


def get_stock(item_id, location_id):
    """Quantity of an item at a location (0 if never stocked there)."""
    level = StockLevel.query.filter_by(item_id=item_id, location_id=location_id).first()
    return level.quantity if level else 0


def adjust(item_id, location_id, delta, actor=None, movement_type='adjustment',
           reason=None, reference=None):
    """Apply a signed quantity change and record it in the movement log.

    Returns:
        int: the new quantity at the location

    Raises:
        InsufficientStock: if the result would go negative; nothing is written
    """
    delta = int(delta)
    level = _locked_level(item_id, location_id)
    current = level.quantity if level else 0
    new_quantity = current + delta
    if new_quantity < 0:
        raise InsufficientStock(item_id, location_id, current, -delta)

    if level is None:
        level = StockLevel(item_id=item_id, location_id=location_id, quantity=0)
        db.session.add(level)
    level.quantity = new_quantity
    level.updated_at = datetime.utcnow()
    level.updated_by_id = actor.id if actor else None

    db.session.add(StockMovement(
        item_id=item_id,
        location_id=location_id,
        change=delta,
        movement_type=movement_type,
        reason=reason,
        reference=reference,
        performed_by_id=actor.id if actor else None
    ))
    db.session.flush()

    logger.debug("stock item=%s location=%s %s%d -> %d",
                 item_id, location_id, '+' if delta >= 0 else '', delta, new_quantity)
    return new_quantity


def record_movement(item, movement_type, quantity, actor, from_location=None,
                    to_location=None, reason=None, reference=None):
    """Book a manual movement (stock in/out, adjustment, consumption, transfer).

    ``quantity`` is positive except for adjustments, where its sign is the
    direction. Returns the StockMovement rows written.
    """
    if not item.is_active:
        raise ValidationError(f"Item '{item.name}' is inactive")
    if quantity == 0:
        raise ValidationError("Quantity cannot be zero")

    reason = reason or movement_type
    if movement_type == 'in':
        _require(to_location, 'toLocation', quantity)
        adjust(item.id, to_location.id, quantity, actor, 'in', reason, reference)
    elif movement_type in ('out', 'consumption'):
        _require(from_location, 'fromLocation', quantity)
        adjust(item.id, from_location.id, -quantity, actor, movement_type, reason, reference)
    elif movement_type == 'transfer':
        _require(from_location, 'fromLocation', quantity)
        _require(to_location, 'toLocation', quantity)
        if from_location.id == to_location.id:
            raise ValidationError("Source and destination must differ")
        adjust(item.id, from_location.id, -quantity, actor, 'transfer', reason, reference)
        adjust(item.id, to_location.id, quantity, actor, 'transfer', reason, reference)
    elif movement_type == 'adjustment':
        location = to_location or from_location
        if location is None:
            raise ValidationError("A location is required")
        adjust(item.id, location.id, quantity, actor, 'adjustment', reason, reference)
    else:
        raise ValidationError("Invalid movement type")

    return StockMovement.query.filter_by(item_id=item.id)\
        .order_by(StockMovement.id.desc())\
        .limit(2 if movement_type == 'transfer' else 1).all()


def _require(location, field, quantity):
    if location is None:
        raise ValidationError(f"{field} is required")
    if quantity < 0:
        raise ValidationError("Quantity must be greater than 0")


def stock_by_location(item_id):
    """All StockLevel rows of an item, store rooms first."""
    return StockLevel.query.join(Location)\
        .filter(StockLevel.item_id == item_id)\
        .order_by(Location.location_type.desc(), Location.code)\
        .all()


def total_stock(item_id):
    """Units on hand across all locations (excludes in-transit)."""
    total = db.session.query(func.coalesce(func.sum(StockLevel.quantity), 0))\
        .filter(StockLevel.item_id == item_id).scalar()
    return int(total)


def in_transit_quantity(item_id):
    """Units approved out of a source but not yet received."""
    total = db.session.query(func.coalesce(func.sum(Transfer.quantity), 0))\
        .filter(Transfer.item_id == item_id, Transfer.status == 'in_transit')\
        .scalar()
    return int(total)


def get_item(item_id):
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFound("Inventory item not found")
    return item


def get_location(location_ref):
    """Resolve a location by primary key or code."""
    location = None
    if isinstance(location_ref, int) or str(location_ref).isdigit():
        location = db.session.get(Location, int(location_ref))
    if location is None and location_ref is not None:
        location = Location.query.filter_by(code=str(location_ref)).first()
    if location is None:
        raise NotFound(f"Location '{location_ref}' not found")
    return location
