from backoffice.extensions import db


class Package(db.Model):
    """Membership package; carries the customer's meeting room allowance."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    monthly_hours_limit = db.Column(db.Integer, nullable=False, default=20)
    max_bookings_per_day = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'monthlyHoursLimit': self.monthly_hours_limit,
            'maxBookingsPerDay': self.max_bookings_per_day,
        }

    def __repr__(self):
        return f'<Package {self.name}>'
