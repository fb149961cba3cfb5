# backoffice/inventory/transfers.py
"""Transfer workflow: pending -> in_transit -> completed, or -> cancelled.

Stock leaves the source when a transfer is approved and reaches the
destination when it is completed. Cancelling an in-transit transfer returns
the reserved quantity to the source. Every transition is a single
``atomic()`` unit; the Transfer version column rejects a second concurrent
transition of the same row with ``Conflict``.
"""

import logging
from datetime import datetime

from backoffice.extensions import db
from backoffice.exceptions import InvalidTransition, NotFound, ValidationError
from backoffice.inventory import ledger
from backoffice.models import Transfer
from backoffice.models.transfer import TRANSFER_STATUSES
from backoffice.utils import atomic

logger = logging.getLogger(__name__)


def get_transfer(transfer_id, lock=False):
    query = Transfer.query.filter_by(id=transfer_id)
    if lock:
        query = query.with_for_update()
    transfer = query.first()
    if transfer is None:
        raise NotFound("Transfer not found")
    return transfer


def list_transfers(status=None, item_id=None):
    query = Transfer.query
    if status:
        if status not in TRANSFER_STATUSES:
            raise ValidationError("Invalid status")
        query = query.filter(Transfer.status == status)
    if item_id:
        query = query.filter(Transfer.item_id == item_id)
    return query.order_by(Transfer.requested_at.desc(), Transfer.id.desc()).all()


def create_transfer(item, from_location, to_location, quantity, requester, notes=None):
    """Open a pending transfer. No stock moves yet."""
    if not item.is_active:
        raise ValidationError(f"Item '{item.name}' is inactive")
    if from_location.id == to_location.id:
        raise ValidationError("Source and destination must differ")
    if quantity is None or int(quantity) <= 0:
        raise ValidationError("Quantity must be greater than 0")

    with atomic():
        transfer = Transfer(
            item_id=item.id,
            from_location_id=from_location.id,
            to_location_id=to_location.id,
            quantity=int(quantity),
            status='pending',
            requested_by_id=requester.id,
            notes=notes
        )
        db.session.add(transfer)

    logger.info("Transfer %s requested by %s: %d x item %s %s -> %s",
                transfer.id, requester.username, transfer.quantity, item.id,
                from_location.code, to_location.code)
    return transfer


def _guard(transfer, target):
    if not transfer.can_transition_to(target):
        raise InvalidTransition(transfer.status, target)


def approve(transfer_id, actor, notes=None, now=None):
    """pending -> in_transit; takes the quantity out of the source."""
    with atomic():
        transfer = get_transfer(transfer_id, lock=True)
        _guard(transfer, 'in_transit')
        ledger.adjust(
            transfer.item_id, transfer.from_location_id, -transfer.quantity,
            actor, 'transfer', f"Sent to {transfer.to_location.code}", transfer.reference
        )
        transfer.status = 'in_transit'
        transfer.approved_by_id = actor.id
        transfer.approved_at = now or datetime.utcnow()
        if notes:
            transfer.notes = notes

    logger.info("Transfer %s approved by %s", transfer.id, actor.username)
    return transfer


def complete(transfer_id, actor, notes=None, now=None):
    """in_transit -> completed; delivers the quantity to the destination."""
    with atomic():
        transfer = get_transfer(transfer_id, lock=True)
        _guard(transfer, 'completed')
        ledger.adjust(
            transfer.item_id, transfer.to_location_id, transfer.quantity,
            actor, 'transfer', f"Received from {transfer.from_location.code}", transfer.reference
        )
        transfer.status = 'completed'
        transfer.completed_by_id = actor.id
        transfer.completed_at = now or datetime.utcnow()
        if notes:
            transfer.notes = notes

    logger.info("Transfer %s completed by %s", transfer.id, actor.username)
    return transfer


def cancel(transfer_id, actor, notes=None, now=None):
    """pending|in_transit -> cancelled; returns reserved stock if it had left."""
    with atomic():
        transfer = get_transfer(transfer_id, lock=True)
        _guard(transfer, 'cancelled')
        if transfer.status == 'in_transit':
            ledger.adjust(
                transfer.item_id, transfer.from_location_id, transfer.quantity,
                actor, 'transfer', "Transfer cancelled in transit", transfer.reference
            )
        transfer.status = 'cancelled'
        transfer.cancelled_by_id = actor.id
        transfer.cancelled_at = now or datetime.utcnow()
        if notes:
            transfer.notes = notes

    logger.info("Transfer %s cancelled by %s", transfer.id, actor.username)
    return transfer


_TRANSITIONS = {
    'in_transit': approve,
    'completed': complete,
    'cancelled': cancel,
}


def transition(transfer_id, status, actor, notes=None, now=None):
    """Drive the workflow from a requested target status."""
    if status not in TRANSFER_STATUSES:
        raise ValidationError("Invalid status")
    handler = _TRANSITIONS.get(status)
    if handler is None:
        # Nothing moves back to pending
        transfer = get_transfer(transfer_id)
        raise InvalidTransition(transfer.status, status)
    return handler(transfer_id, actor, notes=notes, now=now)
