# backoffice/models/transfer.py

from datetime import datetime
from backoffice.extensions import db


TRANSFER_STATUSES = ('pending', 'in_transit', 'completed', 'cancelled')

# Forward-only moves; anything missing here is an invalid transition
ALLOWED_TRANSITIONS = {
    'pending': ('in_transit', 'cancelled'),
    'in_transit': ('completed', 'cancelled'),
    'completed': (),
    'cancelled': (),
}


class Transfer(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    notes = db.Column(db.Text)

    item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    from_location_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    to_location_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)

    requested_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    requested_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    approved_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    approved_at = db.Column(db.DateTime)
    completed_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    completed_at = db.Column(db.DateTime)
    cancelled_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    cancelled_at = db.Column(db.DateTime)

    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {'version_id_col': version_id}

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='transfer_quantity_positive'),
        db.CheckConstraint('from_location_id != to_location_id', name='transfer_distinct_locations'),
    )

    item = db.relationship('InventoryItem')
    from_location = db.relationship('Location', foreign_keys=[from_location_id])
    to_location = db.relationship('Location', foreign_keys=[to_location_id])
    requested_by = db.relationship('User', foreign_keys=[requested_by_id])
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])
    completed_by = db.relationship('User', foreign_keys=[completed_by_id])
    cancelled_by = db.relationship('User', foreign_keys=[cancelled_by_id])

    def can_transition_to(self, status):
        return status in ALLOWED_TRANSITIONS.get(self.status, ())

    @property
    def reference(self):
        return f"transfer:{self.id}"

    def to_dict(self):
        def _user(user):
            return user.username if user else None

        def _ts(value):
            return value.isoformat() if value else None

        return {
            'id': self.id,
            'itemId': self.item_id,
            'itemName': self.item.name if self.item else None,
            'fromLocation': self.from_location.code if self.from_location else None,
            'toLocation': self.to_location.code if self.to_location else None,
            'quantity': self.quantity,
            'status': self.status,
            'notes': self.notes,
            'requestedBy': _user(self.requested_by),
            'requestedAt': _ts(self.requested_at),
            'approvedBy': _user(self.approved_by),
            'approvedAt': _ts(self.approved_at),
            'completedBy': _user(self.completed_by),
            'completedAt': _ts(self.completed_at),
            'cancelledBy': _user(self.cancelled_by),
            'cancelledAt': _ts(self.cancelled_at),
        }

    def __repr__(self):
        return f'<Transfer {self.id} {self.status}>'
