from flask_jwt_extended import decode_token
from hotelix.models.hotel import User
from tests.test_utils_seed import ensure_hotel, ensure_user


def _register(client, **overrides):
    body = {'email': 'new.staff@example.com', 'password': 'secret1', 'confirm_password': 'secret1', 'name': 'New'}
    body.update(overrides)
    return client.post('/auth/register', json=body)


def test_register_returns_session_and_token(client):
    hotel = ensure_hotel('Auth Register Hotel', adresse='Rue A', pays='France')
    resp = _register(client, email='reg.ok@example.com', hotel_id=hotel.id)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    user = body['user']
    assert user['email'] == 'reg.ok@example.com'
    assert user['role'] == User.ROLE_STAFF
    assert user['hotel'] == {'id': hotel.id, 'nom': 'Auth Register Hotel', 'adresse': 'Rue A', 'pays': 'France'}
    claims = decode_token(body['access_token'])
    assert claims['sub'] == str(user['id'])
    assert claims['hotel_id'] == hotel.id
    assert 'INT.CREATE' in claims['perms'] and 'INT.ASSIGN' not in claims['perms']


def test_register_collects_field_errors(client):
    resp = client.post('/auth/register', json={'email': 'not-an-email', 'password': '123'})
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['code'] == 'VALIDATION_ERROR'
    assert set(err['fields']) == {'email', 'password', 'confirm_password', 'hotel_id'}
    assert err['fields']['email'] == 'Invalid email format'


def test_register_password_mismatch(client):
    hotel = ensure_hotel('Auth Register Hotel')
    resp = _register(client, email='mismatch@example.com', confirm_password='other12', hotel_id=hotel.id)
    assert resp.status_code == 400
    assert resp.get_json()['error']['fields'] == {'confirm_password': 'Passwords do not match'}


def test_register_email_taken(client):
    hotel = ensure_hotel('Auth Register Hotel')
    ensure_user('taken@example.com', hotel)
    resp = _register(client, email='taken@example.com', hotel_id=hotel.id)
    assert resp.status_code == 409
    assert resp.get_json()['error']['code'] == 'EMAIL_TAKEN'


def test_register_unknown_hotel(client):
    resp = _register(client, email='nohotel@example.com', hotel_id=987654)
    assert resp.status_code == 404
    assert resp.get_json()['error']['code'] == 'HOTEL_NOT_FOUND'


def test_register_technician_keeps_specialite(client):
    hotel = ensure_hotel('Auth Register Hotel')
    resp = _register(client, email='reg.tech@example.com', hotel_id=hotel.id, role='TECHNICIEN', specialite='ELECTRICITE')
    assert resp.status_code == 201
    assert resp.get_json()['user']['specialite'] == 'ELECTRICITE'


def test_login_and_me(client):
    hotel = ensure_hotel('Auth Login Hotel')
    ensure_user('login@example.com', hotel, password='secret1', name='Login User')
    resp = client.post('/auth/login', json={'email': 'login@example.com', 'password': 'secret1', 'hotel_id': hotel.id})
    assert resp.status_code == 200, resp.get_json()
    token = resp.get_json()['access_token']

    me = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == 'login@example.com'
    assert body['name'] == 'Login User'
    assert body['hotel']['id'] == hotel.id


def test_login_failures_share_one_message(client):
    hotel = ensure_hotel('Auth Login Hotel')
    other = ensure_hotel('Auth Other Hotel')
    ensure_user('login@example.com', hotel, password='secret1')
    attempts = [
        {'email': 'login@example.com', 'password': 'wrong-pw', 'hotel_id': hotel.id},
        {'email': 'login@example.com', 'password': 'secret1', 'hotel_id': other.id},
        {'email': 'nobody@example.com', 'password': 'secret1', 'hotel_id': hotel.id},
    ]
    details = set()
    for body in attempts:
        resp = client.post('/auth/login', json=body)
        assert resp.status_code == 401
        err = resp.get_json()['error']
        assert err['code'] == 'INVALID_CREDENTIALS'
        details.add(err['detail'])
    assert len(details) == 1


def test_logout_requires_token(client):
    assert client.post('/auth/logout').status_code == 401
    hotel = ensure_hotel('Auth Login Hotel')
    ensure_user('logout@example.com', hotel, password='secret1')
    token = client.post('/auth/login', json={'email': 'logout@example.com', 'password': 'secret1', 'hotel_id': hotel.id}).get_json()['access_token']
    resp = client.post('/auth/logout', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 200


def test_non_string_credentials_are_field_errors(client):
    hotel = ensure_hotel('Auth Register Hotel')
    resp = _register(client, email=123, hotel_id=hotel.id)
    assert resp.status_code == 400
    assert resp.get_json()['error']['fields'] == {'email': 'Invalid email format'}

    resp = client.post('/auth/login', json={'email': 'login@example.com', 'password': 1234567, 'hotel_id': hotel.id})
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['code'] == 'VALIDATION_ERROR'
    assert err['fields'] == {'password': 'Password required'}
