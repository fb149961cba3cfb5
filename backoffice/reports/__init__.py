from flask import Blueprint

bp = Blueprint('reports', __name__)

from backoffice.reports import routes  # noqa: E402,F401
