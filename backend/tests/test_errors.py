from datetime import timedelta
from hotelix import load_config
from tests.test_utils_seed import seed_hotel_team, jwt_headers


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']
    assert 'code' not in body['error']


def test_abort_description_becomes_detail(client):
    hotel, zone, manager, staff, tech = seed_hotel_team('errors')
    resp = client.post('/interventions', json={'titre': 'x'}, headers=jwt_headers(staff))
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['title'] == 'Bad Request'
    assert err['detail'] == 'type, priorite, origine, zone_id required'


def test_missing_token_is_401(client):
    resp = client.get('/interventions')
    assert resp.status_code == 401


def test_internal_error_shape(client, monkeypatch):
    import hotelix.routes.hotels as hotels_mod

    class BoomSession:
        def execute(self, *a, **k):
            raise RuntimeError('explode')

    monkeypatch.setattr(hotels_mod, 'get_db', lambda: BoomSession())
    resp = client.get('/hotels')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert body['error']['detail'] == 'Unexpected error'


def test_healthz(client):
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.delenv('JWT_ACCESS_TOKEN_EXPIRES', raising=False)
    assert load_config()['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(hours=12)
    monkeypatch.setenv('JWT_ACCESS_TOKEN_EXPIRES', '2')
    monkeypatch.setenv('STATS_CACHE_MAX_SIZE', '250')
    config = load_config()
    assert config['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(hours=2)
    assert config['STATS_CACHE_MAX_SIZE'] == 250
