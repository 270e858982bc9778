from __future__ import annotations
import logging
from flask import Blueprint, request, abort
from sqlalchemy import select, func
from hotelix import get_db
from hotelix.decorators.auth import require_permissions
from hotelix.models.hotel import Hotel
from hotelix.models.zone import Zone, SousZone
from hotelix.models.intervention import Intervention
from hotelix.services.policy import assert_hotel_access
from hotelix.utils.validation import validate_choice

logger = logging.getLogger(__name__)

hotels_bp = Blueprint('hotels', __name__)


@hotels_bp.get('/hotels')
def list_hotels():
    # Public: login and register forms need the hotel picker
    session = get_db()
    hotels = session.execute(select(Hotel).order_by(Hotel.nom.asc(), Hotel.id.asc())).scalars().all()
    return {'data': [hotel_json(h) for h in hotels]}


@hotels_bp.get('/hotels/<int:hotel_id>/zones')
@require_permissions('ZONE.READ')
def list_zones(hotel_id: int):
    assert_hotel_access(hotel_id)
    session = get_db()
    zones = session.execute(
        select(Zone).where(Zone.hotel_id == hotel_id).order_by(Zone.nom.asc(), Zone.id.asc())
    ).scalars().all()
    return {'data': [_zone_json(z) for z in zones]}


@hotels_bp.post('/hotels/<int:hotel_id>/zones')
@require_permissions('ZONE.MANAGE')
def create_zone(hotel_id: int):
    assert_hotel_access(hotel_id)
    session = get_db()
    if not session.get(Hotel, hotel_id):
        abort(404)
    data = request.json or {}
    nom = (data.get('nom') or '').strip()
    if not nom:
        abort(400, description='nom required')
    ztype = validate_choice(data.get('type'), Zone.ALL_TYPES, 'type')
    z = Zone(nom=nom, type=ztype, hotel_id=hotel_id)
    session.add(z)
    session.commit()
    return _zone_json(z), 201


@hotels_bp.post('/zones/<int:zone_id>/sous-zones')
@require_permissions('ZONE.MANAGE')
def create_sous_zone(zone_id: int):
    session = get_db()
    z = session.get(Zone, zone_id)
    if not z:
        abort(404)
    assert_hotel_access(z.hotel_id)
    data = request.json or {}
    nom = (data.get('nom') or '').strip()
    if not nom:
        abort(400, description='nom required')
    sz = SousZone(nom=nom, zone=z)
    session.add(sz)
    session.commit()
    return _sous_zone_json(sz), 201


@hotels_bp.delete('/zones/<int:zone_id>')
@require_permissions('ZONE.MANAGE')
def delete_zone(zone_id: int):
    session = get_db()
    z = session.get(Zone, zone_id)
    if not z:
        abort(404)
    assert_hotel_access(z.hotel_id)
    sous_zones = session.execute(select(func.count(SousZone.id)).where(SousZone.zone_id == zone_id)).scalar_one()
    if sous_zones:
        abort(409, description='Zone still has sous-zones')
    used = session.execute(select(func.count(Intervention.id)).where(Intervention.zone_id == zone_id)).scalar_one()
    if used:
        abort(409, description='Zone is referenced by interventions')
    session.delete(z)
    session.commit()
    logger.info('Deleted zone %s of hotel %s', zone_id, z.hotel_id)
    return {'deleted': True, 'id': zone_id}


def hotel_json(h: Hotel):
    return {'id': h.id, 'nom': h.nom, 'adresse': h.adresse, 'pays': h.pays}


def _sous_zone_json(sz: SousZone):
    return {'id': sz.id, 'nom': sz.nom, 'zone_id': sz.zone_id}


def _zone_json(z: Zone):
    return {
        'id': z.id,
        'nom': z.nom,
        'type': z.type,
        'hotel_id': z.hotel_id,
        'sous_zones': [_sous_zone_json(sz) for sz in z.sous_zones],
    }
