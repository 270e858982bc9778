def test_openapi_spec_available(client):
    resp = client.get('/openapi.json')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['openapi'].startswith('3.')
    assert '/auth/login' in body['paths']
    assert body['paths']['/auth/login']['post']['security'] == []


def test_docs_page(client):
    resp = client.get('/docs')
    assert resp.status_code == 200
    assert b'redoc' in resp.data


def test_every_route_documented(app_instance, client):
    spec = client.get('/openapi.json').get_json()
    documented = {(p, m) for p, ops in spec['paths'].items() for m in ops}
    skip = {'/openapi.json', '/docs', '/healthz', '/static/<path:filename>'}
    for rule in app_instance.url_map.iter_rules():
        if rule.rule in skip:
            continue
        path = rule.rule.replace('<int:', '{').replace('>', '}')
        for method in rule.methods - {'OPTIONS'}:
            if method == 'HEAD' and path != '/interventions':
                continue
            assert (path, method.lower()) in documented, f"{method} {path} missing from OpenAPI"


def test_permissions_and_listing_documented(client):
    spec = client.get('/openapi.json').get_json()
    op = spec['paths']['/interventions']['get']
    assert op['x-required-permissions'] == ['INT.READ']
    refs = [p.get('$ref', '') for p in op['parameters']]
    assert refs[-1].endswith('InterventionSortParam')
    assert 'ETag' in op['responses']['200']['headers']
    statuts = spec['components']['schemas']['Intervention']['properties']['statut']['enum']
    assert statuts == ['EN_ATTENTE', 'EN_COURS', 'TERMINEE', 'ANNULEE']
    ops = [od['operationId'] for ops in spec['paths'].values() for od in ops.values()]
    assert len(ops) == len(set(ops))


def test_technician_self_access_documented(client):
    paths = client.get('/openapi.json').get_json()['paths']
    detail = paths['/technicians/{technicien_id}']['get']
    assert 'x-required-permissions' not in detail
    assert detail['x-self-access'] == {'otherwise': 'TECH.READ'}
    assert '403' in detail['responses']
    stats = paths['/technicians/{technicien_id}/stats']['get']
    assert stats['x-required-permissions'] == ['STATS.READ']
    assert stats['x-self-access'] == {'otherwise': 'TECH.READ'}
    assert 'x-self-access' not in paths['/technicians']['get']
