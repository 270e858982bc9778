from __future__ import annotations
import logging
from flask import Blueprint, request, abort
from sqlalchemy import select
from hotelix import get_db
from hotelix.cache.intervention_cache import intervention_cache
from hotelix.decorators.auth import require_permissions
from hotelix.models.hotel import User
from hotelix.services.policy import current_hotel_id, current_user_id, has_permissions
from hotelix.services.stats import StatsService, StatsFilters, STATS_PERIODS, MAX_PERIOD_DAYS
from hotelix.utils.validation import parse_int, parse_date

logger = logging.getLogger(__name__)

stats_bp = Blueprint('stats', __name__)

WARMUP_PERIODS = (None, 7, 30)


@stats_bp.get('/global')
@require_permissions('STATS.READ')
def global_stats():
    period_days = parse_int(request.args.get('period_days'), 'period_days', minimum=0, maximum=MAX_PERIOD_DAYS)
    hotel_id = current_hotel_id()
    stats = StatsService.get_global_stats(hotel_id, period_days)
    return {'hotel_id': hotel_id, 'period_days': period_days or None, **stats.to_dict()}


@stats_bp.get('/counts')
@require_permissions('STATS.READ')
def intervention_counts():
    technicien_id = parse_int(request.args.get('technicien_id'), 'technicien_id', minimum=1)
    if technicien_id and technicien_id != current_user_id() and not has_permissions('TECH.READ'):
        abort(403, description='Missing permission: TECH.READ')
    date_debut = parse_date(request.args.get('date_debut'), 'date_debut')
    date_fin = parse_date(request.args.get('date_fin'), 'date_fin', end_of_day=True)
    if date_debut and date_fin and date_debut > date_fin:
        abort(400, description='date_debut must be before date_fin')
    filters = StatsFilters(
        hotel_id=current_hotel_id(),
        technicien_id=technicien_id,
        period_days=parse_int(request.args.get('period_days'), 'period_days', minimum=0, maximum=MAX_PERIOD_DAYS),
        date_debut=date_debut,
        date_fin=date_fin,
    )
    return StatsService.get_intervention_counts(filters).to_dict()


@stats_bp.get('/technicians/<int:technicien_id>/status')
@require_permissions('STATS.READ')
def technician_status(technicien_id: int):
    session = get_db()
    t = session.execute(
        select(User).where(User.id == technicien_id, User.role == User.ROLE_TECHNICIEN)
    ).scalar_one_or_none()
    if not t or t.hotel_id != current_hotel_id():
        abort(404, description='Technician not found')
    return {'technicien_id': t.id, 'statut': StatsService.get_technician_status(t.id)}


@stats_bp.get('/periods')
@require_permissions('STATS.READ')
def stats_periods():
    return {'data': STATS_PERIODS}


@stats_bp.get('/cache')
@require_permissions('STATS.MANAGE')
def cache_stats():
    return intervention_cache.stats()


@stats_bp.delete('/cache')
@require_permissions('STATS.MANAGE')
def clear_cache():
    intervention_cache.invalidate_all()
    return intervention_cache.stats()


@stats_bp.post('/cache/warmup')
@require_permissions('STATS.MANAGE')
def warmup_cache():
    hotel_id = current_hotel_id()
    for period_days in WARMUP_PERIODS:
        StatsService.get_global_stats(hotel_id, period_days)
    logger.info('Warmed stats cache for hotel %s', hotel_id)
    return {'hotel_id': hotel_id, 'periods': [p or 0 for p in WARMUP_PERIODS], 'cache': intervention_cache.stats()}
