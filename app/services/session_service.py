"""
Session store.

Opaque bearer tokens mapped to session data in the cache backend
(Redis in production). A session expires a fixed SESSION_TTL_SECONDS after
it was created and is never renewed on access. Admin sessions live in a
separate key space from storefront sessions.
"""
import secrets
import time
from typing import Optional, Dict, Any
from flask import current_app

from ..utils.cache import cache, cache_key

USER_SESSION = 'session'
ADMIN_SESSION = 'admin_session'


class SessionService:
    """Create, look up and revoke bearer-token sessions."""

    def __init__(self, kind: str = USER_SESSION, ttl_seconds: int = None):
        self.kind = kind
        self.ttl = ttl_seconds or current_app.config.get('SESSION_TTL_SECONDS', 7 * 24 * 60 * 60)

    def _key(self, token: str) -> str:
        return cache_key(self.kind, token)

    def create(self, subject_id: str, **claims) -> str:
        """
        Store a new session and return its token.

        Args:
            subject_id: User or admin id
            **claims: Extra values kept with the session (email, name, tier, role)
        """
        token = secrets.token_hex(48)
        now_ms = int(time.time() * 1000)
        data = {
            'subjectId': subject_id,
            'createdAt': now_ms,
            'expiresAt': now_ms + self.ttl * 1000,
        }
        data.update(claims)
        cache.set(self._key(token), data, timeout=self.ttl)
        return token

    def get(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Session data for a token, or None when unknown or expired."""
        if not token:
            return None

        data = cache.get(self._key(token))
        if not data:
            return None

        if int(time.time() * 1000) > data.get('expiresAt', 0):
            cache.delete(self._key(token))
            return None
        return data

    def revoke(self, token: Optional[str]) -> None:
        if token:
            cache.delete(self._key(token))


def token_from_request(request) -> Optional[str]:
    """Bearer token from the Authorization header."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header[7:].strip() or None
