"""Password hashing and bearer tokens.

Passwords go through Werkzeug's salted hashes. Tokens are HS256 JWTs whose
``sub`` claim carries the user id; nothing about them is stored server side.
"""
import datetime

import jwt
from werkzeug.security import generate_password_hash, check_password_hash

JWT_ALGORITHM = "HS256"


class InvalidToken(Exception):
    """Raised when a bearer token is malformed, forged or expired."""


def hash_password(password):
    if not password:
        raise ValueError("password is blank")
    return generate_password_hash(password)


def verify_password(password, password_hash):
    if not password or not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # unknown hash method in a stored value
        return False


def issue_token(user_id, secret, expires_hours=2):
    if not secret:
        raise ValueError("token secret is blank")

    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + datetime.timedelta(hours=expires_hours),
    }
    token = jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
    if isinstance(token, bytes):
        token = token.decode('utf-8')
    return token


def verify_token(token, secret):
    """Return the user id carried by ``token`` or raise InvalidToken."""
    if not token:
        raise InvalidToken("token missing")
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken("token invalid") from e

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidToken("token subject invalid") from e
