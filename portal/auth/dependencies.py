# portal/auth/dependencies.py
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portal.auth.jwt_handler import decode_access_token
from portal.database import get_db
from portal.errors import AuthenticationError, AuthorizationError
from portal.faculty.models import User, ROLE_ADMIN, ROLE_FACULTY

log = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an "Authorization: Bearer <token>" header value."""
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip() or " " in token.strip():
        return None
    return token.strip()


def get_current_user_payload(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    token = bearer_token(authorization)
    if not token:
        raise AuthenticationError("Not authorized, no token")

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Not authorized, token failed")
    return payload


def get_current_user(
    payload: Dict[str, Any] = Depends(get_current_user_payload),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the token payload to the database user.
    The stored role wins over whatever the token claims.
    """
    user_id = payload.get("user_id") or payload.get("sub")
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid auth payload: missing user id")

    user = db.get(User, uid)
    if not user:
        raise AuthenticationError("User not found")

    log.debug("get_current_user -> id=%s role=%s", user.id, user.role)
    return user


def require_role(allowed_roles: Iterable[str]) -> Callable:
    allowed = {str(r).lower() for r in allowed_roles}

    def dependency(user: User = Depends(get_current_user)) -> User:
        if str(user.role or "").lower() not in allowed:
            raise AuthorizationError("Access denied. Insufficient role.")
        return user

    return dependency


admin_required = require_role([ROLE_ADMIN])
faculty_required = require_role([ROLE_FACULTY])
