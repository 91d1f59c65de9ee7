"""Cookie sessions: resolve the request's principal or refuse it."""
from typing import Optional

from fastapi import Cookie, Depends, Response
from sqlalchemy.orm import Session

from . import models
from .auth import AdminPrincipal, CustomerPrincipal, PrincipalKind, decode_access_token
from .config import get_settings
from .db import get_db
from .errors import AuthError, InvalidToken

USER_COOKIE = "user_token"
ADMIN_COOKIE = "admin_token"


def set_session_cookie(response: Response, name: str, token: str):
    settings = get_settings()
    response.set_cookie(
        name,
        token,
        max_age=settings.token_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_session_cookie(response: Response, name: str):
    settings = get_settings()
    response.delete_cookie(name, httponly=True, samesite="lax", secure=settings.cookie_secure)


def require_customer(
    user_token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> CustomerPrincipal:
    user_id = decode_access_token(user_token, PrincipalKind.CUSTOMER)
    user = db.get(models.User, user_id)
    if not user or not user.is_active:
        raise InvalidToken("inactive or unknown user")
    return CustomerPrincipal(user.id)


def require_admin(
    admin_token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> AdminPrincipal:
    admin_id = decode_access_token(admin_token, PrincipalKind.ADMIN)
    if not db.get(models.Admin, admin_id):
        raise InvalidToken("unknown admin")
    return AdminPrincipal(admin_id)


def optional_customer(
    user_token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> Optional[CustomerPrincipal]:
    try:
        return require_customer(user_token, db)
    except AuthError:
        return None


def optional_admin(
    admin_token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> Optional[AdminPrincipal]:
    try:
        return require_admin(admin_token, db)
    except AuthError:
        return None
