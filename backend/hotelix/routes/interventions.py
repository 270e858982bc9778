from __future__ import annotations
import logging
from flask import Blueprint, request, abort
from sqlalchemy import case, select
from hotelix import get_db
from hotelix.decorators.auth import require_permissions
from hotelix.decorators.stats_cache import invalidates_stats
from hotelix.models.hotel import User
from hotelix.models.intervention import Intervention
from hotelix.models.zone import Zone, SousZone
from hotelix.services.assignment import resolve_technician, apply_assignment, prefetch_assignment
from hotelix.services.policy import (
    assert_can_modify_intervention, assert_can_view_intervention, assert_hotel_access, assert_manager,
    current_hotel_id, current_role, current_user_id, is_manager,
)
from hotelix.utils.filters import apply_filters
from hotelix.utils.listing import apply_pagination, respond_listing, latest_timestamp, iso_z
from hotelix.utils.sorting import apply_multi_sort
from hotelix.utils.validation import validate_choice

logger = logging.getLogger(__name__)

int_bp = Blueprint('interventions', __name__)

PRIORITE_ORDER = case(Intervention.PRIORITE_RANK, value=Intervention.priorite, else_=-1)

SORT_FIELDS = {
    'date_creation': Intervention.date_creation,
    'statut': Intervention.statut,
    'titre': Intervention.titre,
    'priorite': PRIORITE_ORDER,
    'id': Intervention.id,
}

FILTERS = {
    'statut': {'choices': Intervention.ALL_STATUTS, 'op': lambda q, v: q.filter(Intervention.statut == v)},
    'priorite': {'choices': Intervention.ALL_PRIORITES, 'op': lambda q, v: q.filter(Intervention.priorite == v)},
    'type': {'choices': Intervention.ALL_TYPES, 'op': lambda q, v: q.filter(Intervention.type == v)},
    'zone_id': {'coerce': int, 'op': lambda q, v: q.filter(Intervention.zone_id == v)},
    'assigne_id': {'coerce': int, 'op': lambda q, v: q.filter(Intervention.assigne_id == v)},
}


def _scoped_query(session):
    q = session.query(Intervention).filter(Intervention.hotel_id == current_hotel_id())
    if current_role() == User.ROLE_TECHNICIEN:
        q = q.filter(Intervention.assigne_id == current_user_id())
    return q


@int_bp.route('', methods=['GET', 'HEAD'])
@require_permissions('INT.READ')
def list_interventions():
    session = get_db()
    q = apply_filters(_scoped_query(session), FILTERS, request.args)
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, Intervention.id, default='-date_creation')
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    latest_ts = latest_timestamp(i.updated_at or i.date_creation for i in rows)
    return respond_listing([intervention_json(i) for i in rows], total, limit, offset, latest_ts)


@int_bp.get('/available')
@require_permissions('INT.READ')
def list_available():
    session = get_db()
    rows = (
        session.query(Intervention)
        .filter(
            Intervention.hotel_id == current_hotel_id(),
            Intervention.assigne_id.is_(None),
            Intervention.statut.in_((Intervention.STATUT_EN_ATTENTE, Intervention.STATUT_EN_COURS)),
        )
        .order_by(PRIORITE_ORDER.desc(), Intervention.date_creation.asc(), Intervention.id.asc())
        .all()
    )
    return {'data': [intervention_json(i) for i in rows]}


@int_bp.get('/<int:intervention_id>')
@require_permissions('INT.READ')
def get_intervention(intervention_id: int):
    i = load_intervention(intervention_id)
    assert_can_view_intervention(i)
    return intervention_json(i)


@int_bp.post('')
@require_permissions('INT.CREATE')
@invalidates_stats()
def create_intervention():
    session = get_db()
    data = request.json or {}
    missing = [f for f in ('titre', 'type', 'priorite', 'origine', 'zone_id') if data.get(f) in (None, '')]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")
    titre = str(data['titre']).strip()
    if not titre:
        abort(400, description='titre required')
    hotel_id = current_hotel_id()
    zone = _zone_in_hotel(data['zone_id'], hotel_id)
    sous_zone = _sous_zone_in_zone(data.get('sous_zone_id'), zone)
    technician = None
    if data.get('assigne_id'):
        if not is_manager():
            abort(403, description='Only a manager can assign an intervention')
        technician = resolve_technician(hotel_id, data['assigne_id'])
    i = Intervention(
        titre=titre,
        description=data.get('description') or None,
        type=validate_choice(data['type'], Intervention.ALL_TYPES, 'type'),
        priorite=validate_choice(data['priorite'], Intervention.ALL_PRIORITES, 'priorite'),
        origine=validate_choice(data['origine'], Intervention.ALL_ORIGINES, 'origine'),
        statut=Intervention.STATUT_EN_ATTENTE,
        hotel_id=hotel_id,
        demandeur_id=current_user_id(),
        assigne_id=technician.id if technician else None,
        zone_id=zone.id,
        sous_zone_id=sous_zone.id if sous_zone else None,
    )
    session.add(i)
    session.commit()
    session.refresh(i)
    logger.info('Intervention %s created in hotel %s', i.id, hotel_id)
    return intervention_json(i), 201


@int_bp.patch('/<int:intervention_id>')
@require_permissions('INT.UPDATE')
@invalidates_stats()
def update_intervention(intervention_id: int):
    session = get_db()
    i = load_intervention(intervention_id)
    assert_can_modify_intervention(i)
    if i.statut in Intervention.CLOSED_STATUTS:
        abort(400, description='A closed intervention cannot be modified')
    data = request.json or {}
    if 'titre' in data:
        titre = (data.get('titre') or '').strip()
        if not titre:
            abort(400, description='titre required')
        i.titre = titre
    if 'description' in data:
        i.description = data.get('description') or None
    if 'type' in data:
        i.type = validate_choice(data.get('type'), Intervention.ALL_TYPES, 'type')
    if 'priorite' in data:
        i.priorite = validate_choice(data.get('priorite'), Intervention.ALL_PRIORITES, 'priorite')
    zone = i.zone
    if 'zone_id' in data:
        zone = _zone_in_hotel(data.get('zone_id'), i.hotel_id)
        i.zone_id = zone.id
    if 'sous_zone_id' in data:
        sous_zone = _sous_zone_in_zone(data.get('sous_zone_id'), zone)
        i.sous_zone_id = sous_zone.id if sous_zone else None
    elif i.sous_zone is not None and i.sous_zone.zone_id != zone.id:
        # sous-zone of the previous zone no longer applies
        i.sous_zone_id = None
    session.commit()
    session.refresh(i)
    return intervention_json(i)


@int_bp.post('/<int:intervention_id>/status')
@require_permissions('INT.STATUS')
@invalidates_stats()
def update_statut(intervention_id: int):
    session = get_db()
    i = load_intervention(intervention_id)
    assert_can_modify_intervention(i)
    data = request.json or {}
    statut = validate_choice(data.get('statut'), Intervention.ALL_STATUTS, 'statut')
    previous = i.statut
    i.set_statut(statut)
    session.commit()
    session.refresh(i)
    logger.info('Intervention %s statut %s -> %s', i.id, previous, statut)
    return intervention_json(i)


@int_bp.post('/<int:intervention_id>/assign')
@require_permissions('INT.ASSIGN')
@invalidates_stats(pre_fetch=lambda a, kw: prefetch_assignment(kw.get('intervention_id')))
def assign_intervention(intervention_id: int):
    session = get_db()
    i = load_intervention(intervention_id)
    assert_hotel_access(i.hotel_id)
    assert_manager('Only a manager can assign an intervention')
    data = request.json or {}
    if 'technicien_id' not in data:
        abort(400, description='technicien_id required')
    technician = resolve_technician(i.hotel_id, data.get('technicien_id'))
    apply_assignment(i, technician)
    session.commit()
    session.refresh(i)
    logger.info('Intervention %s assigned to %s', i.id, technician.id if technician else None)
    return intervention_json(i)


def load_intervention(intervention_id: int) -> Intervention:
    session = get_db()
    i = session.execute(select(Intervention).where(Intervention.id == intervention_id)).scalar_one_or_none()
    if not i:
        abort(404)
    return i


def _zone_in_hotel(zone_id, hotel_id: int) -> Zone:
    try:
        zid = int(zone_id)
    except (TypeError, ValueError):
        abort(400, description='zone_id must be int')
    zone = get_db().get(Zone, zid)
    if not zone or zone.hotel_id != hotel_id:
        abort(404, description='Zone not found')
    return zone


def _sous_zone_in_zone(sous_zone_id, zone: Zone):
    if sous_zone_id in (None, '', 0):
        return None
    try:
        szid = int(sous_zone_id)
    except (TypeError, ValueError):
        abort(400, description='sous_zone_id must be int')
    sous_zone = get_db().get(SousZone, szid)
    if not sous_zone or sous_zone.zone_id != zone.id:
        abort(400, description='sous_zone_id does not belong to zone')
    return sous_zone


def _iso(dt):
    return iso_z(dt) if dt else None


def _user_summary(u: User | None):
    if u is None:
        return None
    return {'id': u.id, 'name': u.name, 'email': u.email, 'specialite': u.specialite}


def intervention_json(i: Intervention):
    return {
        'id': i.id,
        'titre': i.titre,
        'description': i.description,
        'type': i.type,
        'priorite': i.priorite,
        'origine': i.origine,
        'statut': i.statut,
        'date_creation': _iso(i.date_creation),
        'date_debut': _iso(i.date_debut),
        'date_fin': _iso(i.date_fin),
        'hotel_id': i.hotel_id,
        'demandeur_id': i.demandeur_id,
        'assigne_id': i.assigne_id,
        'zone_id': i.zone_id,
        'sous_zone_id': i.sous_zone_id,
        'demandeur': _user_summary(i.demandeur),
        'assigne': _user_summary(i.assigne),
        'zone': {'id': i.zone.id, 'nom': i.zone.nom, 'type': i.zone.type} if i.zone else None,
        'sous_zone': {'id': i.sous_zone.id, 'nom': i.sous_zone.nom} if i.sous_zone else None,
    }
