# backoffice/inventory/routes.py

from flask import current_app, request
from flask_login import login_required, current_user

from backoffice.auth.decorators import admin_required, manager_required
from backoffice.extensions import db, limiter
from backoffice.exceptions import ValidationError
from backoffice.inventory import bp, ledger, transfers
from backoffice.inventory.forms import (
    InventoryItemForm, LocationForm, MovementForm, TransferForm, TransferStatusForm
)
from backoffice.models import InventoryItem, Location, StockLevel, StockMovement
from backoffice.models.inventory_item import CATEGORIES
from backoffice.socket_events import notify_inventory_update, notify_stock_alert
from backoffice.utils import api_response, atomic, form_errors


def _item_with_stock(item):
    data = item.to_dict()
    levels = ledger.stock_by_location(item.id)
    data['stock'] = [level.to_dict() for level in levels]
    data['totalStock'] = sum(level.quantity for level in levels)
    data['inTransit'] = ledger.in_transit_quantity(item.id)
    data['stockLevel'] = item.check_stock_level(data['totalStock'])
    return data


#######################################################################
#  LOCATIONS
#######################################################################

@bp.route('/locations')
@login_required
def list_locations():
    locations = Location.query.order_by(Location.location_type.desc(), Location.code).all()
    return api_response([location.to_dict() for location in locations])


@bp.route('/locations', methods=['POST'])
@login_required
@admin_required
def create_location():
    form = LocationForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    with atomic():
        location = Location(
            code=form.code.data,
            name=form.name.data,
            location_type=form.location_type.data,
            description=form.description.data,
            address=form.address.data
        )
        db.session.add(location)

    current_app.logger.info(f"Location {location.code} created by {current_user.username}")
    return api_response(location.to_dict(), 201)


#######################################################################
#  ITEMS
#######################################################################

@bp.route('/inventory/items')
@login_required
def list_items():
    category = request.args.get('category')
    if category and category not in CATEGORIES:
        raise ValidationError("Invalid category")
    include_inactive = request.args.get('includeInactive', 'false').lower() == 'true'
    items = InventoryItem.search(
        request.args.get('q'),
        category=category,
        include_inactive=include_inactive
    )
    return api_response([_item_with_stock(item) for item in items])


@bp.route('/inventory/items/<int:item_id>')
@login_required
def get_item(item_id):
    return api_response(_item_with_stock(ledger.get_item(item_id)))


@bp.route('/inventory/items', methods=['POST'])
@login_required
@manager_required
def create_item():
    form = InventoryItemForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    try:
        item = InventoryItem(**form.submitted_values())
    except ValueError as ve:
        raise ValidationError(str(ve))

    with atomic():
        db.session.add(item)

    current_app.logger.info(f"Item {item.id} '{item.name}' created by {current_user.username}")
    return api_response(item.to_dict(), 201)


@bp.route('/inventory/items/<int:item_id>', methods=['PATCH'])
@login_required
@manager_required
def update_item(item_id):
    item = ledger.get_item(item_id)
    form = InventoryItemForm(partial=True, item=item)
    if not form.validate_on_submit():
        raise form_errors(form)

    with atomic():
        try:
            for attr, value in form.submitted_values().items():
                setattr(item, attr, value)
        except ValueError as ve:
            raise ValidationError(str(ve))

    return api_response(item.to_dict())


@bp.route('/inventory/items/<int:item_id>', methods=['DELETE'])
@login_required
@manager_required
def deactivate_item(item_id):
    """Soft delete: transfers and movements keep referencing the item."""
    item = ledger.get_item(item_id)
    with atomic():
        item.deactivate()
    current_app.logger.info(f"Item {item.id} deactivated by {current_user.username}")
    return api_response(item.to_dict())


#######################################################################
#  STOCK & MOVEMENTS
#######################################################################

@bp.route('/inventory/stock')
@login_required
def get_stock():
    item_id = request.args.get('itemId', type=int)
    location_ref = request.args.get('locationId')

    if item_id and location_ref:
        location = ledger.get_location(location_ref)
        return api_response({
            'itemId': item_id,
            'locationId': location.id,
            'locationCode': location.code,
            'quantity': ledger.get_stock(item_id, location.id)
        })

    query = StockLevel.query
    if item_id:
        query = query.filter(StockLevel.item_id == item_id)
    if location_ref:
        query = query.filter(StockLevel.location_id == ledger.get_location(location_ref).id)
    return api_response([level.to_dict() for level in query.all()])


@bp.route('/inventory/movements')
@login_required
def list_movements():
    query = StockMovement.query
    item_id = request.args.get('itemId', type=int)
    if item_id:
        query = query.filter(StockMovement.item_id == item_id)
    movements = query.order_by(StockMovement.performed_at.desc(), StockMovement.id.desc())\
        .limit(request.args.get('limit', 200, type=int)).all()
    return api_response([m.to_dict() for m in movements])


@bp.route('/inventory/movements', methods=['POST'])
@login_required
@manager_required
@limiter.limit("60 per hour")
def create_movement():
    form = MovementForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    item = ledger.get_item(form.item_id.data)
    from_location = ledger.get_location(form.from_location.data) if form.from_location.data else None
    to_location = ledger.get_location(form.to_location.data) if form.to_location.data else None

    with atomic():
        movements = ledger.record_movement(
            item,
            form.movement_type.data,
            form.quantity.data,
            current_user,
            from_location=from_location,
            to_location=to_location,
            reason=form.reason.data,
            reference=form.reference.data
        )

    for movement in movements:
        quantity = ledger.get_stock(item.id, movement.location_id)
        notify_stock_alert(item, movement.location, quantity)
    notify_inventory_update(item.id, 'movement', {
        'name': item.name,
        'movementType': form.movement_type.data,
        'quantity': form.quantity.data
    })
    return api_response([m.to_dict() for m in movements], 201)


#######################################################################
#  TRANSFERS
#######################################################################

@bp.route('/transfers')
@login_required
def list_transfers():
    result = transfers.list_transfers(
        status=request.args.get('status'),
        item_id=request.args.get('itemId', type=int)
    )
    return api_response([t.to_dict() for t in result])


@bp.route('/transfers/<int:transfer_id>')
@login_required
def get_transfer(transfer_id):
    transfer = transfers.get_transfer(transfer_id)
    data = transfer.to_dict()
    data['movements'] = [
        m.to_dict() for m in StockMovement.query
        .filter_by(reference=transfer.reference)
        .order_by(StockMovement.id).all()
    ]
    return api_response(data)


@bp.route('/transfers', methods=['POST'])
@login_required
@manager_required
@limiter.limit("20 per hour")
def create_transfer():
    """Request a transfer; it starts pending and moves no stock."""
    form = TransferForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    item = ledger.get_item(form.item_id.data)
    from_location = ledger.get_location(form.from_location.data)
    to_location = ledger.get_location(form.to_location.data)

    transfer = transfers.create_transfer(
        item, from_location, to_location, form.quantity.data,
        current_user, notes=form.notes.data
    )
    notify_inventory_update(item.id, 'pending', transfer.to_dict())
    return api_response(transfer.to_dict(), 201)


@bp.route('/transfers/<int:transfer_id>', methods=['PUT'])
@login_required
@manager_required
def update_transfer(transfer_id):
    """Approve (in_transit), complete or cancel a transfer."""
    form = TransferStatusForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    transfer = transfers.transition(
        transfer_id, form.status.data, current_user, notes=form.notes.data or None
    )

    if transfer.status == 'in_transit':
        source = transfer.from_location
        notify_stock_alert(
            transfer.item, source, ledger.get_stock(transfer.item_id, source.id)
        )
    notify_inventory_update(transfer.item_id, transfer.status, transfer.to_dict())
    return api_response(transfer.to_dict())
