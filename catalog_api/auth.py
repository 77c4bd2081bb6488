from functools import wraps

from flask import current_app, g, request

from .errors import ErrorKind, ServiceError, error_response
from .logs import logger
from .security import InvalidToken, verify_token

_CHALLENGE = {'WWW-Authenticate': 'Bearer'}


def bearer_token(header_value):
    """Pull the token out of an ``Authorization: Bearer <token>`` value."""
    if not header_value:
        return None
    scheme, _, token = header_value.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def _unauthorized(message):
    logger.warning("Request rejected - %s", message, extra={'endpoint': request.path, 'status_code': 401})
    return error_response(ServiceError(ErrorKind.UNAUTHORIZED, message), headers=_CHALLENGE)


def token_required(view):
    """Gate a view on a valid bearer token; the user id lands in ``g.user_id``."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token(request.headers.get('Authorization'))
        if token is None:
            return _unauthorized("Unauthorized")

        try:
            g.user_id = verify_token(token, current_app.config['SECRET_KEY'])
        except InvalidToken as e:
            return _unauthorized(f"Unauthorized: {e}")

        return view(*args, **kwargs)
    return wrapper
