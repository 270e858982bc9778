from __future__ import annotations
import logging
from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import select
from hotelix import get_db
from hotelix.errors import raise_if_invalid, abort_with_code, EMAIL_TAKEN, HOTEL_NOT_FOUND, INVALID_CREDENTIALS
from hotelix.models.hotel import Hotel, User
from hotelix.routes.hotels import hotel_json
from hotelix.services.policy import build_claims, current_user_id
from hotelix.utils.validation import validate_login_form, validate_register_form, validate_choice

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

BAD_CREDENTIALS_MESSAGE = 'Email, password or hotel incorrect'


def user_session_json(u: User):
    return {
        'id': u.id,
        'email': u.email,
        'name': u.name,
        'role': u.role,
        'specialite': u.specialite,
        'hotel_id': u.hotel_id,
        'hotel': hotel_json(u.hotel),
    }


def _issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims=build_claims(user))


@auth_bp.post('/register')
def register():
    data = request.json or {}
    raise_if_invalid(validate_register_form(data))
    role = validate_choice(data.get('role') or User.ROLE_STAFF, User.ALL_ROLES, 'role')
    session = get_db()
    email = data['email'].strip().lower()
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        abort_with_code(409, EMAIL_TAKEN, 'A user with this email already exists')
    hotel = session.get(Hotel, int(data['hotel_id']))
    if not hotel:
        abort_with_code(404, HOTEL_NOT_FOUND, 'Hotel not found')
    user = User(
        email=email,
        name=data.get('name') or None,
        role=role,
        specialite=(data.get('specialite') or None) if role == User.ROLE_TECHNICIEN else None,
        hotel_id=hotel.id,
        password_hash='',
    )
    user.set_password(data['password'])
    session.add(user)
    session.commit()
    logger.info('Registered user %s (%s) for hotel %s', user.id, role, hotel.id)
    return {'access_token': _issue_token(user), 'user': user_session_json(user)}, 201


@auth_bp.post('/login')
def login():
    data = request.json or {}
    raise_if_invalid(validate_login_form(data))
    session = get_db()
    email = data['email'].strip().lower()
    user = session.execute(
        select(User).where(User.email == email, User.hotel_id == int(data['hotel_id']))
    ).scalar_one_or_none()
    if not user or not user.verify_password(data['password']):
        logger.info('Failed login for %s on hotel %s', email, data['hotel_id'])
        abort_with_code(401, INVALID_CREDENTIALS, BAD_CREDENTIALS_MESSAGE)
    return {'access_token': _issue_token(user), 'user': user_session_json(user)}


@auth_bp.post('/logout')
@jwt_required()
def logout():
    # Tokens are stateless; clients drop theirs
    return {'status': 'logged_out'}


@auth_bp.get('/me')
@jwt_required()
def me():
    session = get_db()
    user = session.get(User, current_user_id())
    if not user:
        abort(404)
    return user_session_json(user)
