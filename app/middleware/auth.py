"""
Session authentication for storefront and admin endpoints.

Sets g.session, g.session_token and g.user_id (or g.admin_id) for the view.
"""
from functools import wraps
from flask import request, g

from ..extensions import db
from ..models.user import User
from ..services.session_service import (
    SessionService, token_from_request, USER_SESSION, ADMIN_SESSION
)
from ..utils.exceptions import AuthError, ForbiddenError, NotFoundError


def load_session() -> None:
    """Attach the storefront session (if any) to g."""
    token = token_from_request(request)
    session = SessionService(USER_SESSION).get(token)

    g.session_token = token if session else None
    g.session = session
    g.user_id = session['subjectId'] if session else None


def get_current_user():
    """Account for the current session. 404 if it was deleted meanwhile."""
    if not getattr(g, 'user_id', None):
        raise AuthError()
    user = db.session.get(User, g.user_id)
    if not user:
        raise NotFoundError('User')
    return user


def require_session(f):
    """
    Decorator for endpoints that need a logged-in customer.

    Usage:
        @require_session
        def my_endpoint():
            user_id = g.user_id
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        load_session()
        if not g.session:
            raise AuthError()
        return f(*args, **kwargs)

    return decorated_function


def optional_session(f):
    """Like require_session, but guests get through with g.user_id = None."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        load_session()
        return f(*args, **kwargs)

    return decorated_function


def require_admin(roles: list = None):
    """
    Decorator for admin endpoints.

    Args:
        roles: Allowed admin roles. None accepts any admin.

    Usage:
        @require_admin()
        def my_admin_endpoint():
            admin_id = g.admin_id
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            token = token_from_request(request)
            session = SessionService(ADMIN_SESSION).get(token)
            if not session:
                raise AuthError('Admin authentication required')

            if roles and session.get('role') not in roles:
                raise ForbiddenError('Insufficient admin role')

            g.admin_session = session
            g.admin_id = session['subjectId']
            return f(*args, **kwargs)

        return decorated_function
    return decorator
