from functools import wraps
from flask_login import current_user

from backoffice.exceptions import PermissionDenied, Unauthorized


def roles_required(*roles):
    """Decorator to restrict a view to the given roles.

    Unauthenticated callers get 401, authenticated callers without one of the
    roles get 403. Either way the view never runs, so no state changes.

    Args:
        *roles: role names allowed to call the view

    Returns:
        decorator: wraps the view function
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized()
            if not current_user.has_role(*roles):
                raise PermissionDenied()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = roles_required('admin')
manager_required = roles_required('admin', 'manager')
