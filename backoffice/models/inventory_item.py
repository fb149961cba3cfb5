# backoffice/models/inventory_item.py

from datetime import datetime
from decimal import Decimal, InvalidOperation
from backoffice.extensions import db
from sqlalchemy.orm import validates


CATEGORIES = {
    'fixture': 'Fixed installations like panels, lighting, etc.',
    'moveable': 'Portable items like chairs, tables, fans, etc.',
    'consumable': 'Items that get consumed like tea, coffee, supplies, etc.',
}


class InventoryItem(db.Model):
    __tablename__ = 'inventory_item'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(20), nullable=False, index=True)
    subcategory = db.Column(db.String(50))
    sku = db.Column(db.String(50), unique=True)
    unit = db.Column(db.String(20), nullable=False, default='pieces')
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    minimum_stock = db.Column(db.Integer, nullable=False, default=0)
    maximum_stock = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    stock_levels = db.relationship('StockLevel', backref='item', lazy='dynamic')

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Item name cannot be empty")
        return value.strip()

    @validates('category')
    def validate_category(self, key, value):
        if value not in CATEGORIES:
            raise ValueError("Invalid category")
        return value

    @validates('sku')
    def validate_sku(self, key, value):
        # Empty SKUs become NULL so the unique constraint ignores them
        if value is None:
            return None
        value = value.strip()
        return value or None

    @validates('unit_price')
    def validate_unit_price(self, key, value):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError("Unit price must be a number")
        if value < 0:
            raise ValueError("Unit price cannot be negative")
        return value

    @validates('minimum_stock', 'maximum_stock')
    def validate_thresholds(self, key, value):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValueError("Stock thresholds must be whole numbers")
        if value < 0:
            raise ValueError("Stock thresholds cannot be negative")
        return value

    def deactivate(self):
        """Soft delete; transfers and movements keep pointing at the row."""
        self.is_active = False

    def check_stock_level(self, available):
        """
        Classify an available quantity against this item's thresholds.
        Returns:
            - 'out' if nothing is available
            - 'low' if available < minimum_stock
            - 'over' if a maximum is set and available > maximum_stock
            - 'ok' otherwise
        """
        if available == 0:
            return 'out'
        if available < self.minimum_stock:
            return 'low'
        if self.maximum_stock and available > self.maximum_stock:
            return 'over'
        return 'ok'

    @classmethod
    def search(cls, query=None, category=None, include_inactive=False):
        """Filter items by name/SKU substring and category."""
        base_query = cls.query
        if query:
            pattern = f"%{query}%"
            base_query = base_query.filter(
                db.or_(cls.name.ilike(pattern), cls.sku.ilike(pattern))
            )
        if category:
            base_query = base_query.filter(cls.category == category)
        if not include_inactive:
            base_query = base_query.filter(cls.is_active.is_(True))
        return base_query.order_by(cls.name).all()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'subcategory': self.subcategory,
            'sku': self.sku,
            'unit': self.unit,
            'unitPrice': float(self.unit_price or 0),
            'minimumStock': self.minimum_stock,
            'maximumStock': self.maximum_stock,
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<InventoryItem {self.name}>'
