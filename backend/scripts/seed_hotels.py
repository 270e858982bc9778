#!/usr/bin/env python
"""Idempotent seed script for demo hotels, zones and users.

Usage:
    python backend/scripts/seed_hotels.py                 # hotels + default zones
    python backend/scripts/seed_hotels.py --with-users    # also one demo user per role and hotel
    python backend/scripts/seed_hotels.py --dry-run       # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap, re
from sqlalchemy import select, inspect

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from hotelix import create_app, get_db  # type: ignore
from hotelix.models.hotel import Base, Hotel, User
from hotelix.models.zone import Zone, SousZone
import hotelix.models.intervention  # noqa: F401

DEMO_HOTELS = [
    {'nom': 'Club Med Palmiye', 'adresse': 'Kemer, Antalya', 'pays': 'Turquie'},
    {'nom': 'Grand Hotel Paris', 'adresse': 'Avenue des Champs-Élysées', 'pays': 'France'},
    {'nom': 'Hotel Barcelona Plaza', 'adresse': 'Plaça Catalunya', 'pays': 'Espagne'},
]

# zone name -> (type, sous-zones)
DEFAULT_ZONES = {
    'Réception': (Zone.TYPE_RECEPTION, []),
    'Restaurant': (Zone.TYPE_RESTAURANT, ['Salle', 'Terrasse']),
    'Cuisine': (Zone.TYPE_CUISINE, []),
    'Piscine': (Zone.TYPE_PISCINE, []),
    'Chambres': (Zone.TYPE_CHAMBRE, ['Chambre 101', 'Chambre 102', 'Chambre 201']),
    'Local technique': (Zone.TYPE_TECHNIQUE, []),
}

DEMO_USERS = [
    ('manager', User.ROLE_MANAGER, None),
    ('staff', User.ROLE_STAFF, None),
    ('tech', User.ROLE_TECHNICIEN, 'PLOMBERIE'),
]


def _slug(nom: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', nom.lower()).strip('-')


def ensure_hotels(session):
    existing = {h.nom: h for h in session.execute(select(Hotel)).scalars().all()}
    created = 0
    for data in DEMO_HOTELS:
        if data['nom'] not in existing:
            h = Hotel(**data)
            session.add(h)
            existing[data['nom']] = h
            created += 1
    session.flush()
    return [existing[d['nom']] for d in DEMO_HOTELS], created


def ensure_zones(session, hotel: Hotel):
    existing = {z.nom: z for z in session.execute(select(Zone).where(Zone.hotel_id == hotel.id)).scalars().all()}
    created = 0
    for nom, (ztype, sous_zones) in DEFAULT_ZONES.items():
        zone = existing.get(nom)
        if zone is None:
            zone = Zone(nom=nom, type=ztype, hotel_id=hotel.id)
            session.add(zone)
            session.flush()
            created += 1
        have = {sz.nom for sz in zone.sous_zones}
        for sz_nom in sous_zones:
            if sz_nom not in have:
                session.add(SousZone(nom=sz_nom, zone=zone))
                created += 1
    return created


def ensure_demo_users(session, hotel: Hotel, password: str):
    created = 0
    for prefix, role, specialite in DEMO_USERS:
        email = f"{prefix}@{_slug(hotel.nom)}.demo"
        if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
            continue
        u = User(email=email, name=f"{prefix.capitalize()} {hotel.nom}", role=role, specialite=specialite,
                 hotel_id=hotel.id, password_hash='')
        u.set_password(password)
        session.add(u)
        created += 1
        print(f"[INFO] Created {role} {email}")
    return created


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed demo hotels, zones and users",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_hotels.py\n  with users: seed_hotels.py --with-users\n  dry run: seed_hotels.py --dry-run\n""")
    )
    p.add_argument('--with-users', action='store_true', help='Create one demo user per role and hotel')
    p.add_argument('--password', default=os.getenv('SEED_DEMO_PASSWORD', 'demo1234'), help='Password for demo users')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        engine = session.get_bind()
        if not inspect(engine).has_table('hotels'):
            # Bootstrap fallback; prefer `alembic upgrade head`
            Base.metadata.create_all(engine)

        hotels, created_h = ensure_hotels(session)
        created_z = sum(ensure_zones(session, h) for h in hotels)
        created_u = sum(ensure_demo_users(session, h, args.password) for h in hotels) if args.with_users else 0
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Hotels would create: {created_h}, Zones/sous-zones: {created_z}, Users: {created_u}")
        else:
            session.commit()
            print(f"[DONE] Hotels created: {created_h}, Zones/sous-zones created: {created_z}, Users created: {created_u}")


if __name__ == '__main__':
    main()
