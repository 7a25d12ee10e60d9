# portal/auth/jwt_handler.py
# Portal access tokens: signed with JWT_SECRET, carrying the user id and role.
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from portal.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET


def create_access_token(claims: Dict[str, Any], expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode({**claims, "exp": expires_at}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def token_for(user) -> str:
    """Access token for a portal user; ``sub`` is the id as a string."""
    return create_access_token({"sub": str(user.id), "user_id": user.id, "role": user.role})


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token, or None."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
