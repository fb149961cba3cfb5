from flask import Blueprint

bp = Blueprint('time_tracking', __name__)

from backoffice.time_tracking import routes  # noqa: E402,F401
