"""
HTTP Basic authentication helpers.

The header is parsed here; deciding whether a login/password pair is valid
is delegated to an injected async predicate (see BasicAuthMiddleware).
"""

import base64
import binascii
import hmac
from collections.abc import Awaitable, Callable
from typing import Optional

import bcrypt
from fastapi import HTTPException, status

CredentialVerifier = Callable[[str, str], Awaitable[bool]]

BASIC_PREFIX = "Basic "

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
BCRYPT_MAX_PASSWORD_BYTES = 72


def unauthorized_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


def parse_basic_credentials(authorization: Optional[str]) -> tuple[str, str]:
    """
    Decode an `Authorization: Basic base64(login:password)` header.

    Returns:
        tuple: (login, password)

    Raises:
        HTTPException 401: Header missing, wrong scheme, bad base64 or no ':'
    """
    if not authorization or not authorization.startswith(BASIC_PREFIX):
        raise unauthorized_error("Unauthorized")

    encoded = authorization[len(BASIC_PREFIX):].strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise unauthorized_error("Invalid Authorization Header")

    login, sep, password = decoded.partition(":")
    if not sep:
        raise unauthorized_error("Invalid Authorization Header")

    return login, password


def hash_password(password: str, rounds: int = 12) -> str:
    """bcrypt-hash a password for AUTH_BASIC_PASSWORD_HASH."""
    encoded = password.encode()
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"password longer than {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode()


def configured_credentials(login: str, password_hash: str) -> CredentialVerifier:
    """
    Build a verifier for a single configured login.

    Args:
        login: Expected login (compared in constant time)
        password_hash: bcrypt hash of the expected password
    """
    expected_login = login.encode()
    expected_hash = password_hash.encode()

    async def verify(candidate_login: str, candidate_password: str) -> bool:
        login_ok = hmac.compare_digest(candidate_login.encode(), expected_login)
        password = candidate_password.encode()
        if len(password) > BCRYPT_MAX_PASSWORD_BYTES:
            return False
        # Always run bcrypt so a wrong login costs the same as a wrong password
        password_ok = bcrypt.checkpw(password, expected_hash)
        return login_ok and password_ok

    return verify
