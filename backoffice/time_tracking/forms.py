from flask_wtf import FlaskForm
from wtforms import IntegerField, TextAreaField
from wtforms.validators import Length, Optional


class CheckInForm(FlaskForm):
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=500)])
    branch_id = IntegerField('Branch', name='branchId', validators=[Optional()])
