import json

from ithub.app import db
from ithub.app.history import StoreWriteFailure
from ithub.app.models import AssetHistory, NetworkIp, Pc, Software

PC = {'asset_number': 'PC-001', 'model_name': 'ThinkPad T14', 'user_name': 'Kim', 'ram': '8GB',
      'status': 'assigned'}
NETWORK_IP = {'ip_address': '10.0.0.5', 'subnet_mask': '255.255.255.0', 'gateway': '10.0.0.1',
              'assigned_device': 'core-switch', 'vlan_id': 10}

def history_rows(app, asset_type, asset_id):
    with app.app_context():
        rows = (AssetHistory.query
                .filter_by(asset_type=asset_type, asset_id=asset_id)
                .order_by(AssetHistory.id)
                .all())
        return [(r.action, r.field_name, r.old_value, r.new_value) for r in rows]

def create(client, kind, data):
    response = client.post(f'/api/{kind}/', json=data)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']['id']

def test_assets_unauthenticated(client):
    response = client.get('/api/pc/')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Unauthorized'}

    response = client.post('/api/pc/', json=PC)
    assert response.status_code == 401

def test_create_asset_records_history(auth_client, app, admin_user):
    response = auth_client.post('/api/pc/', json=PC, headers={'User-Agent': 'pytest-browser'})

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['asset_number'] == 'PC-001'
    assert data['created_by'] == admin_user

    with app.app_context():
        row = AssetHistory.query.one()
        assert (row.asset_type, row.asset_id, row.action) == ('pc', data['id'], 'create')
        assert row.field_name is None
        assert row.changed_by == admin_user
        assert row.user_agent == 'pytest-browser'

def test_asset_detail_includes_history(auth_client):
    asset_id = create(auth_client, 'pc', PC)

    response = auth_client.get(f'/api/pc/{asset_id}')

    assert response.status_code == 200
    body = response.get_json()
    assert body['data']['model_name'] == 'ThinkPad T14'
    assert len(body['history']) == 1
    assert body['history'][0]['action'] == 'create'
    assert body['history'][0]['changed_by_name'] == 'Administrator'

def test_asset_detail_not_found(auth_client):
    response = auth_client.get('/api/server/999')
    assert response.status_code == 404

def test_create_requires_fields(auth_client, app):
    response = auth_client.post('/api/pc/', json={'model_name': 'ThinkPad T14'})

    assert response.status_code == 400
    assert 'asset_number' in response.get_json()['error']
    with app.app_context():
        assert Pc.query.count() == 0
        assert AssetHistory.query.count() == 0

def test_create_rejects_duplicate_asset_number(auth_client):
    create(auth_client, 'pc', PC)
    response = auth_client.post('/api/pc/', json=dict(PC, serial_number='SN-2'))

    assert response.status_code == 400
    assert 'already exists' in response.get_json()['error']

def test_update_records_one_row_per_changed_field(auth_client, app):
    asset_id = create(auth_client, 'pc', PC)

    response = auth_client.put(f'/api/pc/{asset_id}', json={
        'model_name': 'ThinkPad T14',  # unchanged
        'ram': '16GB',
        'user_name': 'Lee',
    })

    assert response.status_code == 200
    body = response.get_json()
    assert body['changedFields'] == ['ram', 'user_name']
    assert body['data']['ram'] == '16GB'
    assert history_rows(app, 'pc', asset_id) == [
        ('create', None, None, None),
        ('update', 'ram', '8GB', '16GB'),
        ('update', 'user_name', 'Kim', 'Lee'),
    ]

def test_update_network_ip_serializes_values(auth_client, app):
    asset_id = create(auth_client, 'network', NETWORK_IP)

    # Sent as raw text; the test client sorts keys when given json=
    body = json.dumps({'vlan_id': 20, 'gateway': '10.0.0.254'})
    response = auth_client.put(f'/api/network/{asset_id}', data=body, content_type='application/json')

    assert response.status_code == 200
    assert history_rows(app, 'network', asset_id)[1:] == [
        ('update', 'vlan_id', '10', '20'),
        ('update', 'gateway', '10.0.0.1', '10.0.0.254'),
    ]

def test_update_without_changes_writes_nothing(auth_client, app):
    asset_id = create(auth_client, 'pc', PC)

    response = auth_client.put(f'/api/pc/{asset_id}', json={'ram': '8GB', 'user_name': 'Kim'})

    assert response.status_code == 200
    assert response.get_json()['changedFields'] == []
    assert history_rows(app, 'pc', asset_id) == [('create', None, None, None)]

def test_update_compares_normalized_values(auth_client, app):
    asset_id = create(auth_client, 'pc', PC)

    # Stored as 'assigned' either way
    response = auth_client.put(f'/api/pc/{asset_id}', json={'status': 'ASSIGNED'})

    assert response.status_code == 200
    assert response.get_json()['changedFields'] == []
    assert history_rows(app, 'pc', asset_id) == [('create', None, None, None)]

    response = auth_client.put(f'/api/pc/{asset_id}', json={'status': 'Repair'})

    assert response.get_json()['changedFields'] == ['status']
    assert history_rows(app, 'pc', asset_id)[-1] == ('update', 'status', 'assigned', 'repair')
    with app.app_context():
        assert db.session.get(Pc, asset_id).status == 'repair'

def test_update_cannot_blank_required_field(auth_client, app):
    asset_id = create(auth_client, 'pc', PC)

    response = auth_client.put(f'/api/pc/{asset_id}', json={'model_name': ''})

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Pc, asset_id).model_name == 'ThinkPad T14'

def test_failed_history_write_rolls_back_update(auth_client, app, monkeypatch):
    asset_id = create(auth_client, 'pc', PC)

    def fail(*args, **kwargs):
        raise StoreWriteFailure('database is locked')

    monkeypatch.setattr('ithub.app.services.assets.record_history', fail)
    response = auth_client.put(f'/api/pc/{asset_id}', json={'ram': '32GB'})

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Operation failed'}
    with app.app_context():
        assert db.session.get(Pc, asset_id).ram == '8GB'
    assert history_rows(app, 'pc', asset_id) == [('create', None, None, None)]

def test_failed_history_write_rolls_back_create(auth_client, app, monkeypatch):
    def fail(*args, **kwargs):
        raise StoreWriteFailure('database is locked')

    monkeypatch.setattr('ithub.app.services.assets.record_history', fail)
    response = auth_client.post('/api/pc/', json=PC)

    assert response.status_code == 500
    with app.app_context():
        assert Pc.query.count() == 0

def test_dispose_asset(auth_client, app):
    asset_id = create(auth_client, 'pc', PC)

    response = auth_client.delete(f'/api/pc/{asset_id}')

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Pc, asset_id).status == 'disposed'
    assert history_rows(app, 'pc', asset_id)[-1] == ('dispose', None, None, None)

    # Already retired
    response = auth_client.delete(f'/api/pc/{asset_id}')
    assert response.status_code == 400
    assert len(history_rows(app, 'pc', asset_id)) == 2

def test_delete_network_ip_deactivates_it(auth_client, app):
    asset_id = create(auth_client, 'network', NETWORK_IP)

    response = auth_client.delete(f'/api/network/{asset_id}')

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(NetworkIp, asset_id).is_active is False
    assert history_rows(app, 'network', asset_id)[-1] == ('delete', None, None, None)

def test_network_ip_detail_shows_range(auth_client):
    asset_id = create(auth_client, 'network', dict(NETWORK_IP, ip_address='10.20.30.40', subnet_mask='255.255.240.0'))

    data = auth_client.get(f'/api/network/{asset_id}').get_json()['data']

    assert data['network_range'] == {'start': '10.20.16.0', 'end': '10.20.31.255'}

def test_network_ip_validation(auth_client):
    response = auth_client.post('/api/network/', json=dict(NETWORK_IP, ip_address='10.0.0.256'))
    assert response.status_code == 400
    assert 'Invalid ip address' in response.get_json()['error']

    response = auth_client.post('/api/network/', json=dict(NETWORK_IP, subnet_mask='255.0.255.0'))
    assert response.status_code == 400
    assert 'subnet mask' in response.get_json()['error']

def test_network_ip_must_be_unique(auth_client):
    create(auth_client, 'network', NETWORK_IP)

    response = auth_client.post('/api/network/', json=dict(NETWORK_IP, assigned_device='other'))

    assert response.status_code == 400
    assert 'core-switch' in response.get_json()['error']

def test_check_duplicate_ip(auth_client):
    asset_id = create(auth_client, 'network', NETWORK_IP)

    response = auth_client.post('/api/network/check-duplicate', json={'ip_address': '10.0.0.5'})
    assert response.get_json() == {'isDuplicate': True, 'existingDevice': 'core-switch'}

    response = auth_client.post('/api/network/check-duplicate',
                                json={'ip_address': '10.0.0.5', 'excludeId': asset_id})
    assert response.get_json() == {'isDuplicate': False}

    response = auth_client.post('/api/network/check-duplicate', json={'ip_address': '10.0.0.6'})
    assert response.get_json() == {'isDuplicate': False}

    response = auth_client.post('/api/network/check-duplicate', json={})
    assert response.status_code == 400

def test_software_allocation_cannot_exceed_purchase(auth_client, app):
    response = auth_client.post('/api/software/', json={
        'software_name': 'Office', 'purchased_quantity': 5, 'allocated_quantity': 6,
    })
    assert response.status_code == 400

    asset_id = create(auth_client, 'software', {'software_name': 'Office', 'purchased_quantity': 5,
                                                'allocated_quantity': 2})
    response = auth_client.put(f'/api/software/{asset_id}', json={'allocated_quantity': 9})

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Software, asset_id).allocated_quantity == 2
    assert history_rows(app, 'software', asset_id) == [('create', None, None, None)]

def test_viewer_cannot_modify(client, make_user):
    make_user('viewer', role='viewer')
    client.post('/api/auth/login', json={'username': 'viewer', 'password': 'password'})

    response = client.post('/api/pc/', json=PC)
    assert response.status_code == 403

    response = client.get('/api/pc/')
    assert response.status_code == 200

def test_list_assets(auth_client):
    for i in range(3):
        create(auth_client, 'printer', {'asset_number': f'PR-00{i}', 'model_name': f'LaserJet {i}',
                                        'location': '2F' if i else '3F'})

    body = auth_client.get('/api/printer/?limit=2').get_json()
    assert body['total'] == 3
    assert body['totalPages'] == 2
    assert len(body['data']) == 2

    body = auth_client.get('/api/printer/?page=2&limit=2').get_json()
    assert len(body['data']) == 1

    body = auth_client.get('/api/printer/?search=3F').get_json()
    assert [p['asset_number'] for p in body['data']] == ['PR-000']

def test_list_filters(auth_client):
    create(auth_client, 'network', NETWORK_IP)
    retired = create(auth_client, 'network', dict(NETWORK_IP, ip_address='10.0.0.9'))
    auth_client.delete(f'/api/network/{retired}')

    body = auth_client.get('/api/network/?is_active=false').get_json()
    assert [n['ip_address'] for n in body['data']] == ['10.0.0.9']

    body = auth_client.get('/api/network/').get_json()
    assert [n['ip_address'] for n in body['data']] == ['10.0.0.5', '10.0.0.9']
