from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from .auth import token_required
from .errors import INTERNAL_ERROR, ErrorKind, Outcome, error_response
from .logs import logger
from .metrics import LOGIN_ATTEMPTS, USERS_REGISTERED
from .model import User, db
from .security import hash_password, issue_token, verify_password
from .validators import validate_login, validate_user

users_bp = Blueprint('users', __name__)

INVALID_CREDENTIALS = "Invalid email or password"


def _issue(user):
    return issue_token(
        user.id,
        current_app.config['SECRET_KEY'],
        expires_hours=current_app.config['TOKEN_EXPIRE_HOURS'],
    )


def create_user(session, payload) -> Outcome:
    checked = validate_user(payload)
    if checked.failed:
        return checked
    data = checked.value

    if session.query(User).filter_by(email=data.email).first():
        return Outcome.fail(ErrorKind.VALIDATION, "User with that email already exists")

    user = User(name=data.name, email=data.email, password=hash_password(data.password))
    session.add(user)
    try:
        # flush for the id; the row is only committed once a token exists
        session.flush()
        token = _issue(user)
        session.commit()
    except IntegrityError:
        # lost a race against a concurrent signup for the same email
        session.rollback()
        return Outcome.fail(ErrorKind.VALIDATION, "User with that email already exists")

    return Outcome.ok((user, token))


def login_user(session, payload) -> Outcome:
    checked = validate_login(payload)
    if checked.failed:
        return Outcome.fail(ErrorKind.VALIDATION, INVALID_CREDENTIALS)
    data = checked.value

    user = session.query(User).filter_by(email=data.email).first()
    if not user or not verify_password(data.password, user.password):
        return Outcome.fail(ErrorKind.VALIDATION, INVALID_CREDENTIALS)

    return Outcome.ok((user, _issue(user)))


def get_self(session, user_id) -> Outcome:
    return Outcome.ok(session.get(User, user_id))


@users_bp.route("", methods=["POST"])
def register():
    """Create a new user
    ---
    tags:
      - users
    requestBody:
      description: The user to create.
      required: true
      content:
        application/json:
          schema:
            $ref: '#/components/schemas/UserIn'
    responses:
      201:
        description: User created successfully
      400:
        description: Invalid payload or user already exists
      500:
        description: Internal Server Error
    """
    try:
        data = request.get_json(silent=True)
        logger.info("Registration attempt", extra={'endpoint': '/users', 'email': data.get('email') if isinstance(data, dict) else None})

        outcome = create_user(db.session, data)
        if outcome.failed:
            logger.warning("Registration failed - %s", outcome.error.message, extra={'endpoint': '/users', 'status_code': outcome.error.kind.status_code})
            return error_response(outcome.error)

        user, token = outcome.value
        USERS_REGISTERED.inc()
        logger.info("User registered successfully", extra={'endpoint': '/users', 'user_id': user.id, 'status_code': 201})
        return jsonify({"success": True, "user": user.to_dict(), "token": token}), 201, {'Authorization': f'Bearer {token}'}
    except Exception as e:
        db.session.rollback()
        logger.error("Registration error", exc_info=True, extra={'endpoint': '/users', 'error': str(e)})
        return error_response(INTERNAL_ERROR)


@users_bp.route("/login", methods=["POST"])
def login():
    """Login a user
    ---
    tags:
      - users
    requestBody:
      description: The user to login.
      required: true
      content:
        application/json:
          schema:
            $ref: '#/components/schemas/LoginIn'
    responses:
      200:
        description: Login successful
      400:
        description: Invalid email or password
      500:
        description: Internal Server Error
    """
    try:
        data = request.get_json(silent=True)
        logger.info("Login attempt", extra={'endpoint': '/users/login', 'email': data.get('email') if isinstance(data, dict) else None})

        outcome = login_user(db.session, data)
        if outcome.failed:
            LOGIN_ATTEMPTS.labels('failed').inc()
            logger.warning("Invalid login credentials", extra={'endpoint': '/users/login', 'status_code': 400})
            return error_response(outcome.error)

        user, token = outcome.value
        LOGIN_ATTEMPTS.labels('success').inc()
        logger.info("Successful login", extra={'endpoint': '/users/login', 'user_id': user.id, 'status_code': 200})
        return jsonify({"success": True, "user": user.to_dict(), "token": token}), 200, {'Authorization': f'Bearer {token}'}
    except Exception as e:
        db.session.rollback()
        LOGIN_ATTEMPTS.labels('failed').inc()
        logger.error("Login error", exc_info=True, extra={'endpoint': '/users/login', 'error': str(e)})
        return error_response(INTERNAL_ERROR)


@users_bp.route("/logout", methods=["GET"])
def logout():
    """Logout a user
    ---
    tags:
      - users
    responses:
      200:
        description: Logout successful
      500:
        description: Internal Server Error
    """
    # tokens are stateless; the empty header tells the client to drop its copy
    logger.info("Logout", extra={'endpoint': '/users/logout', 'status_code': 200})
    return jsonify({"success": True, "message": "Logout successful"}), 200, {'Authorization': 'Bearer '}


@users_bp.route("/me", methods=["GET"])
@token_required
def me():
    """Get currently logged in user
    ---
    tags:
      - users
    security:
      - Bearer: []
    responses:
      200:
        description: User details
      401:
        description: Missing or invalid token
      500:
        description: Internal Server Error
    """
    try:
        user = get_self(db.session, g.user_id).value
        logger.info("Fetched current user", extra={'endpoint': '/users/me', 'user_id': g.user_id, 'status_code': 200})
        return jsonify({"success": True, "user": user.to_dict() if user else None})
    except Exception as e:
        db.session.rollback()
        logger.error("Error retrieving current user", exc_info=True, extra={'endpoint': '/users/me', 'user_id': g.user_id, 'error': str(e)})
        return error_response(INTERNAL_ERROR)
