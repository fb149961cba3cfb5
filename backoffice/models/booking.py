# backoffice/models/booking.py

from datetime import datetime
from backoffice.extensions import db


BOOKING_STATUSES = ('Confirmed', 'Cancelled', 'Completed')


class MeetingRoom(db.Model):
    __tablename__ = 'meeting_room'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    branch_id = db.Column(db.Integer, db.ForeignKey('location.id'))
    capacity = db.Column(db.Integer, nullable=False, default=4)
    amenities = db.Column(db.Text)  # comma separated
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    branch = db.relationship('Location')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'branchId': self.branch_id,
            'capacity': self.capacity,
            'amenities': [a.strip() for a in (self.amenities or '').split(',') if a.strip()],
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<MeetingRoom {self.name}>'


class Booking(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('meeting_room.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey('location.id'))
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # minutes
    status = db.Column(db.String(20), nullable=False, default='Confirmed')
    purpose = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {'version_id_col': version_id}

    room = db.relationship('MeetingRoom', backref=db.backref('bookings', lazy='dynamic'))
    user = db.relationship('User', backref=db.backref('bookings', lazy='dynamic'))

    def overlaps(self, start_time, end_time):
        return start_time < self.end_time and end_time > self.start_time

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'roomName': self.room.name if self.room else None,
            'subjectId': self.user_id,
            'branchId': self.branch_id,
            'date': self.date.isoformat(),
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
            'duration': self.duration,
            'status': self.status,
            'purpose': self.purpose,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Booking {self.id} room={self.room_id} {self.date} {self.status}>'
