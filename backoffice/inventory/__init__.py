from flask import Blueprint

bp = Blueprint('inventory', __name__)

from backoffice.inventory import routes  # noqa: E402,F401
