"""
Middleware package for LUNARA.
"""
from .auth import load_session, get_current_user, require_session, optional_session, require_admin

__all__ = [
    'load_session',
    'get_current_user',
    'require_session',
    'optional_session',
    'require_admin',
]
