from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import case, func, or_, select
from hotelix import get_db
from hotelix.decorators.auth import require_permissions
from hotelix.decorators.stats_cache import invalidates_stats
from hotelix.models.hotel import User
from hotelix.models.intervention import Intervention
from hotelix.routes.hotels import hotel_json
from hotelix.routes.interventions import intervention_json, load_intervention
from hotelix.services.assignment import resolve_technician, apply_assignment
from hotelix.services.policy import (
    assert_hotel_access, assert_manager, current_hotel_id, current_user_id, has_permissions,
)
from hotelix.services.stats import (
    StatsService, InterventionCounts, DEFAULT_TECHNICIAN_PERIOD_DAYS, MAX_PERIOD_DAYS,
    STATUT_DISPONIBLE, STATUT_OCCUPE, STATUT_HORS_LIGNE,
)
from hotelix.utils.listing import iso_z
from hotelix.utils.validation import parse_int, validate_choice

tech_bp = Blueprint('technicians', __name__)


@tech_bp.get('')
@require_permissions('TECH.READ')
def list_technicians():
    session = get_db()
    q = session.query(User).filter(User.hotel_id == current_hotel_id(), User.role == User.ROLE_TECHNICIEN)
    search = (request.args.get('search') or '').strip()
    if search:
        q = q.filter(or_(User.name.ilike(f'%{search}%'), User.email.ilike(f'%{search}%')))
    specialite = request.args.get('specialite')
    if specialite:
        q = q.filter(User.specialite == specialite)
    statut = request.args.get('statut')
    if statut:
        validate_choice(statut, (STATUT_DISPONIBLE, STATUT_OCCUPE, STATUT_HORS_LIGNE), 'statut')
    technicians = q.order_by(User.name.asc(), User.id.asc()).all()
    activity = _activity_by_technician([t.id for t in technicians])
    rows = []
    for t in technicians:
        en_cours, total, last = activity.get(t.id, (0, 0, None))
        row = technician_json(t)
        row.update({
            'interventions_en_cours': en_cours,
            'interventions_total': total,
            'derniere_activite': iso_z(last) if last else None,
            'statut': StatsService.status_from_counts(InterventionCounts(en_cours=en_cours, total=total)),
        })
        if statut and row['statut'] != statut:
            continue
        rows.append(row)
    return {'data': rows}


@tech_bp.get('/<int:technicien_id>')
@require_permissions()
def get_technician(technicien_id: int):
    if technicien_id != current_user_id() and not has_permissions('TECH.READ'):
        abort(403, description='Missing permission: TECH.READ')
    t = _load_technician(technicien_id)
    session = get_db()
    interventions = (
        session.query(Intervention)
        .filter(Intervention.assigne_id == t.id)
        .order_by(Intervention.date_creation.desc(), Intervention.id.desc())
        .all()
    )
    body = technician_json(t)
    body['hotel'] = hotel_json(t.hotel)
    body['interventions'] = [intervention_json(i) for i in interventions]
    body['interventions_count'] = len(interventions)
    return body


@tech_bp.get('/<int:technicien_id>/stats')
@require_permissions('STATS.READ')
def technician_stats(technicien_id: int):
    if technicien_id != current_user_id() and not has_permissions('TECH.READ'):
        abort(403, description='Missing permission: TECH.READ')
    t = _load_technician(technicien_id)
    period_days = parse_int(request.args.get('period_days'), 'period_days', minimum=0, maximum=MAX_PERIOD_DAYS)
    if period_days is None:
        period_days = DEFAULT_TECHNICIAN_PERIOD_DAYS
    stats = StatsService.get_technician_stats(t.id, period_days)
    return {'technicien_id': t.id, 'period_days': period_days, **stats.to_dict()}


@tech_bp.post('/<int:technicien_id>/assignments')
@require_permissions('INT.ASSIGN')
@invalidates_stats()
def assign_to_technician(technicien_id: int):
    assert_manager('Only a manager can assign an intervention')
    data = request.json or {}
    intervention_id = parse_int(data.get('intervention_id'), 'intervention_id', minimum=1)
    if intervention_id is None:
        abort(400, description='intervention_id required')
    technician = resolve_technician(current_hotel_id(), technicien_id)
    if technician is None:
        abort(404, description='Technician not found')
    i = load_intervention(intervention_id)
    assert_hotel_access(i.hotel_id)
    if i.assigne_id is not None:
        abort(400, description='Intervention already assigned')
    apply_assignment(i, technician)
    session = get_db()
    session.commit()
    session.refresh(i)
    return intervention_json(i), 201


def _load_technician(technicien_id: int) -> User:
    session = get_db()
    t = session.execute(
        select(User).where(User.id == technicien_id, User.role == User.ROLE_TECHNICIEN)
    ).scalar_one_or_none()
    if not t or t.hotel_id != current_hotel_id():
        abort(404, description='Technician not found')
    return t


def _activity_by_technician(ids):
    """{technicien_id: (en_cours, total, last date_creation)} for assigned interventions."""
    if not ids:
        return {}
    session = get_db()
    en_cours = func.sum(case((Intervention.statut == Intervention.STATUT_EN_COURS, 1), else_=0))
    q = (
        select(Intervention.assigne_id, en_cours, func.count(Intervention.id), func.max(Intervention.date_creation))
        .where(Intervention.assigne_id.in_(ids))
        .group_by(Intervention.assigne_id)
    )
    return {tid: (int(n_cours or 0), int(n), last) for tid, n_cours, n, last in session.execute(q).all()}


def technician_json(t: User):
    return {
        'id': t.id,
        'email': t.email,
        'name': t.name,
        'role': t.role,
        'specialite': t.specialite,
        'hotel_id': t.hotel_id,
    }
