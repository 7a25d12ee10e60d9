# portal/auth/login.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from portal.auth.dependencies import get_current_user
from portal.auth.jwt_handler import token_for
from portal.database import get_db
from portal.errors import AuthenticationError, NotFoundError, ValidationError
from portal.faculty.models import User

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


def user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role,
    }


@router.post("/login")
def login_post(body: LoginRequest, db: Session = Depends(get_db)):
    username = (body.username or "").strip()
    password = body.password or ""

    if not username or not password:
        raise ValidationError("Please enter all fields")

    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise NotFoundError("User not found")

    if not user.password_hash or not check_password_hash(user.password_hash, password):
        log.info("Rejected login for %s", username)
        raise AuthenticationError("Invalid credentials")

    token = token_for(user)
    log.info("Login ok: %s (%s)", user.username, user.role)
    return {"token": token, "user": user_summary(user)}


@router.get("/me")
def read_me(user: User = Depends(get_current_user)):
    return user_summary(user)
