from __future__ import annotations
from typing import Optional
from flask import abort
from sqlalchemy import select
from hotelix import get_db
from hotelix.models.hotel import User
from hotelix.models.intervention import Intervention


def resolve_technician(hotel_id: int, technicien_id) -> Optional[User]:
    """Return the assignable technician, or None for 0 / null (unassign)."""
    if technicien_id in (None, 0, '0', ''):
        return None
    try:
        tid = int(technicien_id)
    except (TypeError, ValueError):
        abort(400, description='technicien_id must be int')
    session = get_db()
    user = session.execute(select(User).where(User.id == tid)).scalar_one_or_none()
    if not user or user.hotel_id != hotel_id:
        abort(404, description='Technician not found')
    if user.role != User.ROLE_TECHNICIEN:
        abort(400, description='User is not a technician')
    return user


def apply_assignment(intervention: Intervention, technician: Optional[User]):
    # Any (re)assignment puts the ticket back in the queue
    intervention.assigne_id = technician.id if technician else None
    intervention.statut = Intervention.STATUT_EN_ATTENTE
    return intervention


def prefetch_assignment(intervention_id) -> dict:
    """Snapshot of hotel and previous assignee, taken before the view mutates them."""
    if intervention_id is None:
        return {}
    session = get_db()
    i = session.get(Intervention, int(intervention_id))
    if not i:
        return {}
    return {'hotel_id': i.hotel_id, 'assigne_id': i.assigne_id}
