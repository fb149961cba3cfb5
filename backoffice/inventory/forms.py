from flask_wtf import FlaskForm
from wtforms import (
    StringField,
    IntegerField,
    DecimalField,
    TextAreaField,
    SelectField,
    BooleanField
)
from wtforms.validators import (
    DataRequired,
    InputRequired,
    NumberRange,
    Optional,
    Length,
    StopValidation,
    ValidationError
)

from backoffice.models.inventory_item import CATEGORIES
from backoffice.models.location import LOCATION_TYPES
from backoffice.models.stock import MOVEMENT_TYPES
from backoffice.models.transfer import TRANSFER_STATUSES


def whole_number(form, field):
    """JSON floats would otherwise be truncated by ``int()``."""
    raw = field.raw_data[0] if field.raw_data else None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return
    if isinstance(raw, str) and raw.strip().lstrip('-').isdigit():
        return
    raise StopValidation('Quantity must be a whole number')


class LocationForm(FlaskForm):
    code = StringField('Code', validators=[DataRequired(), Length(max=40)])
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    location_type = SelectField(
        'Location Type',
        name='locationType',
        choices=list(LOCATION_TYPES.items()),
        default='branch_room'
    )
    description = TextAreaField('Description')
    address = StringField('Address', validators=[Optional(), Length(max=200)])


class InventoryItemForm(FlaskForm):
    """
    Create or edit an inventory item.
    On edit (``partial=True``) missing fields keep their stored value.
    """
    name = StringField('Item Name', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description')
    category = SelectField('Category', choices=[(c, c.title()) for c in CATEGORIES])
    subcategory = StringField('Subcategory', validators=[Optional(), Length(max=50)])
    sku = StringField('SKU', validators=[Optional(), Length(max=50)])
    unit = StringField('Unit', validators=[Optional(), Length(max=20)], default='pieces')
    unit_price = DecimalField('Unit Price', name='unitPrice', places=2, validators=[
        Optional(),
        NumberRange(min=0, message="Unit price must be 0 or greater")
    ])
    minimum_stock = IntegerField('Minimum Stock', name='minimumStock', validators=[
        Optional(),
        NumberRange(min=0, message="Minimum stock must be 0 or greater")
    ])
    maximum_stock = IntegerField('Maximum Stock', name='maximumStock', validators=[
        Optional(),
        NumberRange(min=0, message="Maximum stock must be 0 or greater")
    ])
    is_active = BooleanField('Active', name='isActive', default=True)

    def __init__(self, *args, partial=False, item=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.partial = partial
        self.item = item
        if partial:
            for field in (self.name, self.category):
                field.validators = [Optional()]
            self.category.validate_choice = bool(self.category.raw_data)

    def _stored(self, attr):
        return getattr(self.item, attr) if self.item is not None else None

    def validate_minimum_stock(self, field):
        # Only the minimum was sent: compare it with the stored maximum
        if self.maximum_stock.raw_data:
            return
        maximum = self._stored('maximum_stock')
        if maximum and field.data and field.data > maximum:
            raise ValidationError('Minimum stock cannot exceed maximum stock')

    def validate_maximum_stock(self, field):
        minimum = self.minimum_stock.data
        if minimum is None:
            minimum = self._stored('minimum_stock')
        if field.data and minimum and field.data < minimum:
            raise ValidationError('Maximum stock cannot be below minimum stock')

    def submitted_values(self):
        """Model attribute -> value for every field present in the body."""
        values = {}
        for attr, field in self._fields.items():
            if not field.raw_data:
                continue
            if field.data is None:
                continue
            values[attr] = field.data
        return values


class MovementForm(FlaskForm):
    item_id = IntegerField('Item', name='itemId', validators=[InputRequired()])
    movement_type = SelectField(
        'Movement Type',
        name='movementType',
        choices=list(MOVEMENT_TYPES.items()),
        validators=[DataRequired()]
    )
    quantity = IntegerField('Quantity', validators=[InputRequired(), whole_number])
    from_location = StringField('From', name='fromLocation', validators=[Optional()])
    to_location = StringField('To', name='toLocation', validators=[Optional()])
    reason = StringField('Reason', validators=[DataRequired(message='Reason is required')])
    reference = StringField('Reference', validators=[Optional(), Length(max=64)])

    def validate_quantity(self, field):
        if field.data == 0:
            raise ValidationError('Quantity cannot be zero')
        if self.movement_type.data != 'adjustment' and field.data < 0:
            raise ValidationError('Quantity must be greater than 0')


class TransferForm(FlaskForm):
    """
    Request a transfer of one item between two locations.
    """
    item_id = IntegerField('Item', name='itemId', validators=[InputRequired()])
    from_location = StringField('From', name='fromLocation', validators=[DataRequired()])
    to_location = StringField('To', name='toLocation', validators=[DataRequired()])
    quantity = IntegerField('Quantity to Transfer', validators=[
        InputRequired(),
        whole_number,
        NumberRange(min=1, message="Quantity must be greater than 0")
    ])
    notes = TextAreaField('Notes')

    def validate_to_location(self, field):
        if field.data and str(field.data) == str(self.from_location.data):
            raise ValidationError('Source and destination must differ')


class TransferStatusForm(FlaskForm):
    status = SelectField(
        'Status',
        choices=[(s, s) for s in TRANSFER_STATUSES],
        validators=[DataRequired(message='Status is required')]
    )
    notes = TextAreaField('Notes')
