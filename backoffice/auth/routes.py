from flask import current_app
from flask_login import current_user, login_user, logout_user, login_required

from backoffice.auth import bp
from backoffice.auth.forms import LoginForm
from backoffice.exceptions import PermissionDenied, Unauthorized
from backoffice.extensions import limiter
from backoffice.models import User
from backoffice.utils import api_response, form_errors


@bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute")  # Protect against brute force
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        raise form_errors(form)

    user = User.query.filter_by(username=form.username.data).first()
    if user is None or not user.check_password(form.password.data):
        raise Unauthorized('Invalid username or password')
    if not user.is_active:
        raise PermissionDenied('Account is disabled')

    login_user(user, remember=form.remember_me.data)
    user.update_last_login()
    current_app.logger.info(f'User logged in: {user.username}')
    return api_response(user.to_dict())


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return api_response()


@bp.route('/me')
@login_required
def me():
    return api_response(current_user.to_dict())
