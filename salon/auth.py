import enum
import time
from dataclasses import dataclass
from typing import Optional, Union

import jwt
from passlib.context import CryptContext

from .config import get_settings
from .errors import InvalidToken, Unauthenticated

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


class PrincipalKind(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class CustomerPrincipal:
    id: int
    kind = PrincipalKind.CUSTOMER


@dataclass(frozen=True)
class AdminPrincipal:
    id: int
    kind = PrincipalKind.ADMIN


Principal = Union[CustomerPrincipal, AdminPrincipal]


def _secret_for(kind: PrincipalKind) -> str:
    settings = get_settings()
    return settings.admin_jwt_secret if kind is PrincipalKind.ADMIN else settings.jwt_secret


def _audience(kind: PrincipalKind) -> str:
    # Distinct audiences keep the two kinds apart even if both secrets match.
    return f"salon:{kind.value}"


def create_access_token(kind: PrincipalKind, principal_id: int, now: Optional[int] = None) -> str:
    issued = int(time.time()) if now is None else int(now)
    exp = issued + get_settings().token_ttl_seconds
    payload = {
        "sub": str(principal_id),
        "kind": kind.value,
        "aud": _audience(kind),
        "iat": issued,
        "exp": exp,
    }
    return jwt.encode(payload, _secret_for(kind), algorithm=ALGORITHM)


def decode_access_token(token: Optional[str], expected_kind: PrincipalKind) -> int:
    """Return the principal id carried by ``token``.

    Raises Unauthenticated when no token is presented and InvalidToken for
    anything else that goes wrong (signature, expiry, audience, claim shape).
    """
    if not token:
        raise Unauthenticated("no token")
    try:
        payload = jwt.decode(
            token,
            _secret_for(expected_kind),
            algorithms=[ALGORITHM],
            audience=_audience(expected_kind),
            options={"require": ["sub", "exp", "aud"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidToken(type(e).__name__) from e
    if payload.get("kind") != expected_kind.value:
        raise InvalidToken("kind mismatch")
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidToken("malformed subject") from e


def issue_token(principal: Principal) -> str:
    return create_access_token(principal.kind, principal.id)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)
