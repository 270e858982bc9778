"""Test seeding utilities to reduce duplication.

Every helper is idempotent on its natural key (hotel name, email, zone name)
because the whole suite shares one in-memory database.
"""
from datetime import datetime, timezone
from typing import Optional
from flask_jwt_extended import create_access_token
from hotelix import get_db
from hotelix.models.hotel import Hotel, User
from hotelix.models.zone import Zone, SousZone
from hotelix.models.intervention import Intervention
from hotelix.services.policy import build_claims


def ensure_hotel(nom: str, adresse: str = '1 rue de Test', pays: str = 'France') -> Hotel:
    session = get_db()
    h = session.query(Hotel).filter_by(nom=nom).one_or_none()
    if not h:
        h = Hotel(nom=nom, adresse=adresse, pays=pays)
        session.add(h); session.commit(); session.refresh(h)
    return h


def ensure_user(email: str, hotel: Hotel, role: str = User.ROLE_STAFF, password: str = 'secret1',
                specialite: Optional[str] = None, name: Optional[str] = None) -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(email=email, name=name or email.split('@')[0], role=role, specialite=specialite,
                 hotel_id=hotel.id, password_hash='')
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def ensure_zone(hotel: Hotel, nom: str = 'Lobby', ztype: str = Zone.TYPE_RECEPTION, sous_zones=()) -> Zone:
    session = get_db()
    z = session.query(Zone).filter_by(hotel_id=hotel.id, nom=nom).one_or_none()
    if not z:
        z = Zone(nom=nom, type=ztype, hotel_id=hotel.id)
        session.add(z); session.flush()
        for sz in sous_zones:
            session.add(SousZone(nom=sz, zone=z))
        session.commit(); session.refresh(z)
    return z


def create_intervention(hotel: Hotel, demandeur: User, zone: Zone, titre: str = 'Fuite lavabo',
                        statut: str = Intervention.STATUT_EN_ATTENTE, type: str = 'PLOMBERIE',
                        priorite: str = 'NORMALE', assigne: Optional[User] = None,
                        date_creation: Optional[datetime] = None, date_debut: Optional[datetime] = None,
                        date_fin: Optional[datetime] = None) -> Intervention:
    session = get_db()
    i = Intervention(
        titre=titre, type=type, priorite=priorite, origine=Intervention.ORIGINE_STAFF, statut=statut,
        hotel_id=hotel.id, demandeur_id=demandeur.id, assigne_id=assigne.id if assigne else None,
        zone_id=zone.id, date_creation=date_creation or datetime.now(timezone.utc),
        date_debut=date_debut, date_fin=date_fin,
    )
    session.add(i); session.commit(); session.refresh(i)
    return i


def jwt_headers(user: User):
    """Bearer header for ``user``; needs an application context."""
    token = create_access_token(identity=str(user.id), additional_claims=build_claims(user))
    return {'Authorization': f'Bearer {token}'}


def seed_hotel_team(prefix: str):
    """Hotel with one zone and a manager, a staff member and a technician."""
    hotel = ensure_hotel(f'{prefix} Hotel')
    zone = ensure_zone(hotel, nom=f'{prefix} Lobby', sous_zones=('Desk', 'Bar'))
    manager = ensure_user(f'{prefix}.manager@example.com', hotel, role=User.ROLE_MANAGER)
    staff = ensure_user(f'{prefix}.staff@example.com', hotel, role=User.ROLE_STAFF)
    tech = ensure_user(f'{prefix}.tech@example.com', hotel, role=User.ROLE_TECHNICIEN, specialite='PLOMBERIE')
    return hotel, zone, manager, staff, tech
