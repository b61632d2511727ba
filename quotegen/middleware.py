"""Middleware for authentication and role checks."""
from functools import wraps
from flask import session, g, current_app
from sqlalchemy.exc import SQLAlchemyError
from quotegen.database import get_session
from quotegen.models import AppUser, UserRole
from quotegen.exceptions import UnauthorizedError, ForbiddenError


def load_user():
    """
    Load current user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_role if the
    signed session cookie carries an active user id.
    """
    g.user = None
    g.user_role = None

    user_id = session.get('user_id')
    if not user_id:
        return

    db_session = get_session()
    if not db_session:
        return

    try:
        user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    except SQLAlchemyError as e:
        # Log it so the request still reaches its handler as anonymous
        current_app.logger.error(f"Error in load_user: {e}")
        db_session.rollback()
        return

    if user:
        g.user = user
        g.user_role = user.role
    else:
        # User was deactivated or deleted since login
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Raises UnauthorizedError (401 JSON) if not authenticated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function


def require_role(min_role=UserRole.SALES.value):
    """
    Decorator: Require minimum role.

    Roles hierarchy: admin > sales

    Args:
        min_role: Minimum role required ('admin' or 'sales')

    Must be used AFTER require_login.
    """
    role_hierarchy = {UserRole.ADMIN.value: 2, UserRole.SALES.value: 1}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.get('user') is None:
                raise UnauthorizedError()

            user_role_level = role_hierarchy.get(g.user.role, 0)
            required_level = role_hierarchy.get(min_role, 1)

            if user_role_level < required_level:
                raise ForbiddenError(f'You need the {min_role} role or higher for this action')

            return f(*args, **kwargs)
        return decorated_function
    return decorator
