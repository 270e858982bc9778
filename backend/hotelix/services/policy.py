from __future__ import annotations
from typing import Any, Dict, Set
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity
from hotelix.constants.permissions import permissions_for_role
from hotelix.models.hotel import User


def build_claims(user: User) -> Dict[str, Any]:
    """Additional JWT claims for ``user``; identity itself is ``str(user.id)``."""
    return {
        'role': user.role,
        'hotel_id': user.hotel_id,
        'perms': permissions_for_role(user.role),
    }


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)


def current_user_id() -> int:
    # JWT identity is a string (flask-jwt-extended v4 requirement)
    return int(get_jwt_identity())


def current_hotel_id() -> int:
    return int(get_jwt()['hotel_id'])


def current_role() -> str:
    return get_jwt().get('role', '')


def is_manager() -> bool:
    return current_role() == User.ROLE_MANAGER


def assert_hotel_access(hotel_id: int):
    if hotel_id != current_hotel_id():
        abort(403, description='Hotel access denied')


def assert_manager(description: str = 'Only a manager can perform this action'):
    if not is_manager():
        abort(403, description=description)


def can_modify_intervention(intervention) -> bool:
    """MANAGER modifies anything in its hotel; TECHNICIEN only its own assignments; STAFF nothing."""
    role = current_role()
    if role == User.ROLE_MANAGER:
        return True
    return role == User.ROLE_TECHNICIEN and intervention.assigne_id == current_user_id()


def assert_can_modify_intervention(intervention):
    assert_hotel_access(intervention.hotel_id)
    if not can_modify_intervention(intervention):
        abort(403, description='Insufficient permission to modify this intervention')


def assert_can_view_intervention(intervention):
    assert_hotel_access(intervention.hotel_id)
    if current_role() == User.ROLE_TECHNICIEN and intervention.assigne_id != current_user_id():
        abort(403, description='Intervention not assigned to you')
