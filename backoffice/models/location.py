# backoffice/models/location.py

from backoffice.extensions import db
from sqlalchemy import event
from sqlalchemy.orm import validates
from sqlalchemy.exc import IntegrityError


LOCATION_TYPES = {
    'store_room': 'Store Room',
    'branch_room': 'Branch Room',
    'office': 'Office',
}


class Location(db.Model):
    """A place stock can sit in: the store room, a branch or an office."""
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(40), unique=True, nullable=False)
    name = db.Column(db.String(100), unique=True, nullable=False)
    location_type = db.Column(db.String(20), nullable=False, default='branch_room')
    description = db.Column(db.Text)
    address = db.Column(db.String(200))

    stock_levels = db.relationship('StockLevel', backref='location', lazy='dynamic')

    PREDEFINED_LOCATIONS = [
        ("store-room-1", "Main Store Room", "store_room", "Central store room"),
        ("branch-A", "Downtown Branch", "branch_room", "Downtown coworking branch"),
        ("branch-B", "Business Bay Branch", "branch_room", "Business Bay coworking branch"),
    ]

    @validates('location_type')
    def validate_location_type(self, key, value):
        if value not in LOCATION_TYPES:
            raise ValueError("Invalid location type")
        return value

    @classmethod
    def get_predefined_locations(cls):
        """Create predefined locations if they don't exist."""
        for code, name, location_type, desc in cls.PREDEFINED_LOCATIONS:
            if not cls.query.filter_by(code=code).first():
                db.session.add(cls(
                    code=code,
                    name=name,
                    location_type=location_type,
                    description=desc
                ))
        db.session.commit()
        return cls.query.filter(
            cls.code.in_([c for c, _, _, _ in cls.PREDEFINED_LOCATIONS])
        ).all()

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'locationType': self.location_type,
            'description': self.description,
            'address': self.address,
        }

    def __repr__(self):
        return f'<Location {self.code}>'


@event.listens_for(Location, 'before_insert')
def validate_location_code(mapper, connection, target):
    """Ensure location code is present before insert."""
    if not target.code or not target.code.strip():
        raise IntegrityError("Location code cannot be empty", None, None)
    target.code = target.code.strip()
