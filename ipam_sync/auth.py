"""Request authentication.

Flow:
  1. System header (X-System-User: auto-sync) -> the configured system account,
     optionally also requiring SYSTEM_SYNC_TOKEN as the Bearer token.
     Only honoured on routes decorated with require_auth(allow_system=True).
  2. Bearer token signed by issue_token()
  3. Session user_id

Decorators:
  - require_auth: enforces a caller; sets g.current_user and g.initiator
"""
import functools
import logging
import uuid
from typing import Optional

from flask import current_app, g, jsonify, request, session
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ipam_sync.config import settings
from ipam_sync.core.context import Initiator

logger = logging.getLogger(__name__)

TOKEN_SALT = "ipam-sync-api-token"

# Caller headers relayed to the private sheet reader
FORWARDED_HEADERS = ("Authorization", "Cookie")


def require_auth(f=None, *, allow_system: bool = False):
    """Decorator: require a Bearer token or a session.

    With allow_system=True the system header is accepted as well. Usable
    bare (@require_auth) or with arguments (@require_auth(allow_system=True)).
    """
    def decorator(view):
        @functools.wraps(view)
        def decorated(*args, **kwargs):
            user, initiator = _get_current_user(allow_system=allow_system)
            if not user:
                return jsonify({"error": "Unauthorized", "code": "AUTH_REQUIRED"}), 401

            g.current_user = user
            g.initiator = initiator
            return view(*args, **kwargs)

        return decorated

    if f is None:
        return decorator
    return decorator(f)


def forward_headers() -> dict:
    """Caller credentials to relay upstream."""
    return {name: request.headers[name] for name in FORWARDED_HEADERS if name in request.headers}


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user) -> str:
    """Signed API token for a user."""
    return _serializer().dumps(str(user.id))


def verify_token(token: str, max_age: Optional[int] = None):
    """Return the active User a token was issued for, or None."""
    from ipam_sync.extensions import db
    from ipam_sync.models import User

    try:
        user_id = _serializer().loads(
            token, max_age=max_age or settings.API_TOKEN_MAX_AGE_SECONDS
        )
    except SignatureExpired:
        logger.info("Rejected expired API token")
        return None
    except BadSignature:
        return None

    try:
        user = db.session.get(User, uuid.UUID(user_id))
    except (TypeError, ValueError):
        return None
    if user and user.is_active:
        return user
    return None


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def _get_current_user(allow_system: bool = False):
    """Resolve (user, initiator) from the system header, Bearer token or session.

    The system header is ignored unless allow_system is set.
    """
    from ipam_sync.extensions import db
    from ipam_sync.models import User
    from ipam_sync.services.sync_service import get_system_user

    # 1. System header
    if allow_system and _is_system_request():
        if settings.SYSTEM_SYNC_TOKEN and _bearer_token() != settings.SYSTEM_SYNC_TOKEN:
            logger.warning("System sync header without a valid system token")
            return None, None
        system_user = get_system_user()
        if not system_user:
            logger.error(f"System account '{settings.SYSTEM_USER_EMAIL}' not found")
            return None, None
        return system_user, Initiator.system()

    # 2. Bearer token
    token = _bearer_token()
    if token:
        user = verify_token(token)
        return (user, Initiator.user(user.id)) if user else (None, None)

    # 3. Session
    user_id = session.get("user_id")
    if user_id:
        try:
            user = db.session.get(User, uuid.UUID(str(user_id)))
        except ValueError:
            user = None
        if user and user.is_active:
            return user, Initiator.user(user.id)

    return None, None


def _is_system_request() -> bool:
    return request.headers.get(settings.SYSTEM_SYNC_HEADER) == settings.SYSTEM_SYNC_HEADER_VALUE
