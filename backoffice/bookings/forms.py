from flask_wtf import FlaskForm
from wtforms import DateField, IntegerField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, Regexp


HHMM = Regexp(r'^\d{2}:\d{2}$', message='Expected HH:MM')


class BookingForm(FlaskForm):
    """JSON body: ``{roomId, date, startTime, endTime, purpose}``."""
    room_id = IntegerField('Room', name='roomId', validators=[InputRequired()])
    date = DateField('Date', format='%Y-%m-%d', validators=[DataRequired()])
    start_time = StringField('Start', name='startTime', validators=[DataRequired(), HHMM])
    end_time = StringField('End', name='endTime', validators=[DataRequired(), HHMM])
    purpose = TextAreaField('Purpose', validators=[
        DataRequired(message='Purpose is required'),
        Length(max=500)
    ])
