from flask import Blueprint

bp = Blueprint('bookings', __name__)

from backoffice.bookings import routes  # noqa: E402,F401
