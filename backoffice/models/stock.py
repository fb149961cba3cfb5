# backoffice/models/stock.py

from datetime import datetime
from backoffice.extensions import db
from sqlalchemy.orm import validates


MOVEMENT_TYPES = {
    'in': 'Stock In',
    'out': 'Stock Out',
    'transfer': 'Transfer',
    'adjustment': 'Adjustment',
    'consumption': 'Consumption',
}


class StockLevel(db.Model):
    """Quantity of one item held at one location."""
    __tablename__ = 'stock_level'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))

    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {'version_id_col': version_id}

    __table_args__ = (
        db.UniqueConstraint('item_id', 'location_id', name='unique_stock_per_location'),
    )

    @validates('quantity')
    def validate_quantity(self, key, value):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValueError("Quantity must be a whole number")
        if value < 0:
            raise ValueError("Quantity cannot be negative")
        return value

    def to_dict(self):
        return {
            'itemId': self.item_id,
            'locationId': self.location_id,
            'locationCode': self.location.code if self.location else None,
            'quantity': self.quantity,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<StockLevel item={self.item_id} location={self.location_id} qty={self.quantity}>'


class StockMovement(db.Model):
    """Append-only audit row for every ledger adjustment"""
    __tablename__ = 'stock_movement'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    change = db.Column(db.Integer, nullable=False)  # signed quantity
    movement_type = db.Column(db.String(20), nullable=False)
    reason = db.Column(db.Text)
    reference = db.Column(db.String(64))  # e.g. transfer:12
    performed_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    performed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    item = db.relationship('InventoryItem')
    location = db.relationship('Location')
    performed_by = db.relationship('User')

    @validates('movement_type')
    def validate_movement_type(self, key, value):
        if value not in MOVEMENT_TYPES:
            raise ValueError("Invalid movement type")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'itemId': self.item_id,
            'locationId': self.location_id,
            'locationCode': self.location.code if self.location else None,
            'change': self.change,
            'movementType': self.movement_type,
            'reason': self.reason,
            'reference': self.reference,
            'performedBy': self.performed_by.username if self.performed_by else None,
            'performedAt': self.performed_at.isoformat() if self.performed_at else None,
        }

    def __repr__(self):
        return f'<StockMovement {self.movement_type} {self.change:+d}>'
