from hotelix.models.zone import Zone
from tests.test_utils_seed import seed_hotel_team, ensure_hotel, create_intervention, jwt_headers


def test_list_hotels_is_public_and_sorted(client):
    ensure_hotel('Zz Last Hotel')
    ensure_hotel('Aa First Hotel')
    resp = client.get('/hotels')
    assert resp.status_code == 200
    names = [h['nom'] for h in resp.get_json()['data']]
    assert names == sorted(names)
    assert {'Aa First Hotel', 'Zz Last Hotel'} <= set(names)


def test_list_zones_with_sous_zones(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('zones-list')
    resp = client.get(f'/hotels/{hotel.id}/zones', headers=jwt_headers(tech))
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert [z['nom'] for z in data] == ['zones-list Lobby']
    assert [sz['nom'] for sz in data[0]['sous_zones']] == ['Bar', 'Desk']


def test_zones_are_hotel_scoped(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('zones-scope')
    other_hotel, *_ = seed_hotel_team('zones-scope-other')
    assert client.get(f'/hotels/{other_hotel.id}/zones', headers=jwt_headers(manager)).status_code == 403
    resp = client.post(f'/hotels/{other_hotel.id}/zones', json={'nom': 'Spa', 'type': 'SPA'}, headers=jwt_headers(manager))
    assert resp.status_code == 403


def test_create_zone_and_sous_zone(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('zones-create')
    headers = jwt_headers(manager)
    resp = client.post(f'/hotels/{hotel.id}/zones', json={'nom': 'Piscine Nord', 'type': Zone.TYPE_PISCINE}, headers=headers)
    assert resp.status_code == 201
    created = resp.get_json()
    assert created['hotel_id'] == hotel.id
    assert created['sous_zones'] == []
    resp = client.post(f"/zones/{created['id']}/sous-zones", json={'nom': 'Bassin'}, headers=headers)
    assert resp.status_code == 201
    assert resp.get_json()['zone_id'] == created['id']
    listed = client.get(f'/hotels/{hotel.id}/zones', headers=headers).get_json()['data']
    pool = next(z for z in listed if z['id'] == created['id'])
    assert [sz['nom'] for sz in pool['sous_zones']] == ['Bassin']


def test_create_zone_validation_and_permissions(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('zones-invalid')
    resp = client.post(f'/hotels/{hotel.id}/zones', json={'nom': 'Grenier', 'type': 'GRENIER'}, headers=jwt_headers(manager))
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'type invalid'
    assert client.post(f'/hotels/{hotel.id}/zones', json={'type': 'SPA'}, headers=jwt_headers(manager)).status_code == 400
    resp = client.post(f'/hotels/{hotel.id}/zones', json={'nom': 'Spa', 'type': 'SPA'}, headers=jwt_headers(staff))
    assert resp.status_code == 403
    assert client.post(f'/zones/{zone.id}/sous-zones', json={'nom': 'x'}, headers=jwt_headers(tech)).status_code == 403


def test_delete_zone_conflicts(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('zones-delete')
    headers = jwt_headers(manager)
    # seeded zone has sous-zones
    resp = client.delete(f'/zones/{zone.id}', headers=headers)
    assert resp.status_code == 409

    used = client.post(f'/hotels/{hotel.id}/zones', json={'nom': 'Used', 'type': 'CUISINE'}, headers=headers).get_json()
    from hotelix import get_db
    create_intervention(hotel, staff, get_db().get(Zone, used['id']))
    assert client.delete(f"/zones/{used['id']}", headers=headers).status_code == 409

    empty = client.post(f'/hotels/{hotel.id}/zones', json={'nom': 'Empty', 'type': 'EXTERIEUR'}, headers=headers).get_json()
    resp = client.delete(f"/zones/{empty['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json() == {'deleted': True, 'id': empty['id']}
    assert client.delete(f"/zones/{empty['id']}", headers=headers).status_code == 404
