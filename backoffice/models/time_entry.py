# backoffice/models/time_entry.py

from backoffice.extensions import db
from sqlalchemy import text


CHECKED_IN = 'Checked In'
CHECKED_OUT = 'Checked Out'


class TimeEntry(db.Model):
    """One check-in/check-out pair for a staff member or customer."""
    __tablename__ = 'time_entry'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey('location.id'))
    check_in_time = db.Column(db.DateTime, nullable=False)
    check_out_time = db.Column(db.DateTime)
    duration = db.Column(db.Integer)  # minutes, set on check-out
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=CHECKED_IN)
    notes = db.Column(db.Text)

    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {'version_id_col': version_id}

    # At most one open entry per subject, even under concurrent check-ins
    __table_args__ = (
        db.Index(
            'uq_time_entry_open_per_user',
            'user_id',
            unique=True,
            sqlite_where=text("status = 'Checked In'"),
            postgresql_where=text("status = 'Checked In'"),
        ),
    )

    user = db.relationship('User', backref=db.backref('time_entries', lazy='dynamic'))
    branch = db.relationship('Location')

    def to_dict(self):
        return {
            'id': self.id,
            'subjectId': self.user_id,
            'branchId': self.branch_id,
            'checkInTime': self.check_in_time.isoformat(),
            'checkOutTime': self.check_out_time.isoformat() if self.check_out_time else None,
            'duration': self.duration,
            'date': self.date.isoformat(),
            'status': self.status,
            'notes': self.notes or '',
        }

    def __repr__(self):
        return f'<TimeEntry {self.id} user={self.user_id} {self.status}>'
