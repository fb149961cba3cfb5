from backoffice.models import StockLevel, Transfer

from conftest import get_item, get_location


def test_unknown_route_uses_envelope(client):
    response = client.get('/nope')
    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_login_required(client):
    """Protected endpoints answer 401 without touching state."""
    protected = [
        ('get', '/auth/me'),
        ('get', '/inventory/items'),
        ('post', '/transfers'),
        ('post', '/time-entries/checkin'),
        ('post', '/bookings'),
        ('get', '/reports/low-stock'),
    ]
    for method, route in protected:
        response = getattr(client, method)(route, json={})
        assert response.status_code == 401, route
        assert response.get_json()['success'] is False


def test_login_and_logout(client):
    response = client.post('/auth/login', json={'username': 'admin', 'password': 'wrong'})
    assert response.status_code == 401

    response = client.post('/auth/login', json={'username': 'admin', 'password': 'admin-pass'})
    assert response.status_code == 200
    assert response.get_json()['data']['role'] == 'admin'

    assert client.get('/auth/me').status_code == 200
    assert client.post('/auth/logout').status_code == 200
    assert client.get('/auth/me').status_code == 401


def test_login_validation(client):
    response = client.post('/auth/login', json={'username': 'admin'})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'Password is required'


def test_list_items_with_stock(staff_client):
    response = staff_client.get('/inventory/items')
    assert response.status_code == 200
    items = {item['name']: item for item in response.get_json()['data']}
    assert items['Office Chair']['totalStock'] == 10
    assert items['Coffee Beans']['stockLevel'] == 'low'

    response = staff_client.get('/inventory/items?category=consumable')
    assert [item['name'] for item in response.get_json()['data']] == ['Coffee Beans']

    assert staff_client.get('/inventory/items?category=food').status_code == 400


def test_create_update_and_deactivate_item(manager_client, staff_client):
    response = staff_client.post('/inventory/items', json={'name': 'Desk', 'category': 'moveable'})
    assert response.status_code == 403

    response = manager_client.post('/inventory/items', json={
        'name': 'Desk',
        'category': 'moveable',
        'unitPrice': 120,
        'minimumStock': 2
    })
    assert response.status_code == 201
    item = response.get_json()['data']
    assert item['minimumStock'] == 2

    response = manager_client.patch(f"/inventory/items/{item['id']}", json={'minimumStock': 4})
    assert response.status_code == 200
    assert response.get_json()['data']['minimumStock'] == 4
    assert response.get_json()['data']['category'] == 'moveable'

    response = manager_client.delete(f"/inventory/items/{item['id']}")
    assert response.get_json()['data']['isActive'] is False

    assert manager_client.get('/inventory/items/999').status_code == 404


def test_stock_lookup(app, staff_client):
    with app.app_context():
        item_id = get_item().id

    response = staff_client.get(f'/inventory/stock?itemId={item_id}&locationId=store-room-1')
    assert response.get_json()['data']['quantity'] == 10

    response = staff_client.get(f'/inventory/stock?itemId={item_id}&locationId=branch-B')
    assert response.get_json()['data']['quantity'] == 0


def test_movement_endpoint(app, manager_client):
    with app.app_context():
        item_id = get_item().id

    response = manager_client.post('/inventory/movements', json={
        'itemId': item_id,
        'movementType': 'out',
        'quantity': 12,
        'fromLocation': 'store-room-1',
        'reason': 'Broken'
    })
    assert response.status_code == 409
    assert response.get_json()['code'] == 'INSUFFICIENT_STOCK'

    response = manager_client.post('/inventory/movements', json={
        'itemId': item_id,
        'movementType': 'in',
        'quantity': 5,
        'toLocation': 'branch-B',
        'reason': 'Purchase'
    })
    assert response.status_code == 201

    with app.app_context():
        assert StockLevel.query.filter_by(
            item_id=item_id, location_id=get_location('branch-B').id
        ).one().quantity == 5


def test_transfer_workflow_over_http(app, manager_client, staff_client):
    with app.app_context():
        item_id = get_item().id

    payload = {
        'itemId': item_id,
        'fromLocation': 'store-room-1',
        'toLocation': 'branch-A',
        'quantity': 4,
        'notes': 'Weekly restock'
    }
    assert staff_client.post('/transfers', json=payload).status_code == 403

    response = manager_client.post('/transfers', json=payload)
    assert response.status_code == 201
    transfer = response.get_json()['data']
    assert transfer['status'] == 'pending'

    url = f"/transfers/{transfer['id']}"
    response = staff_client.put(url, json={'status': 'in_transit'})
    assert response.status_code == 403

    response = manager_client.put(url, json={'status': 'in_transit'})
    assert response.get_json()['data']['status'] == 'in_transit'

    response = manager_client.put(url, json={'status': 'completed'})
    assert response.get_json()['data']['status'] == 'completed'

    response = manager_client.put(url, json={'status': 'cancelled'})
    assert response.status_code == 409
    assert response.get_json()['code'] == 'INVALID_TRANSITION'

    response = manager_client.put(url, json={'status': 'shipped'})
    assert response.status_code == 400

    response = staff_client.get('/transfers?status=completed')
    assert [t['id'] for t in response.get_json()['data']] == [transfer['id']]

    response = staff_client.get(url)
    assert len(response.get_json()['data']['movements']) == 2

    with app.app_context():
        assert Transfer.query.count() == 1


def test_transfer_same_location_rejected(app, manager_client):
    with app.app_context():
        item_id = get_item().id

    response = manager_client.post('/transfers', json={
        'itemId': item_id,
        'fromLocation': 'store-room-1',
        'toLocation': 'store-room-1',
        'quantity': 1
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Source and destination must differ'


def test_locations_admin_only(manager_client, admin_client):
    payload = {'code': 'branch-C', 'name': 'Marina Branch', 'locationType': 'branch_room'}
    assert manager_client.post('/locations', json=payload).status_code == 403

    response = admin_client.post('/locations', json=payload)
    assert response.status_code == 201
    assert response.get_json()['data']['code'] == 'branch-C'

    response = admin_client.get('/locations')
    assert len(response.get_json()['data']) == 4


def test_seed_locations_command(runner, app):
    result = runner.invoke(args=['seed-locations'])
    assert 'Locations have been seeded successfully!' in result.output
    with app.app_context():
        assert get_location('branch-B').name == 'Business Bay Branch'


def test_fractional_quantities_rejected(app, manager_client):
    with app.app_context():
        item_id = get_item().id

    response = manager_client.post('/transfers', json={
        'itemId': item_id,
        'fromLocation': 'store-room-1',
        'toLocation': 'branch-A',
        'quantity': 4.7
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Quantity must be a whole number'

    response = manager_client.post('/inventory/movements', json={
        'itemId': item_id,
        'movementType': 'out',
        'quantity': 2.5,
        'fromLocation': 'store-room-1',
        'reason': 'Broken'
    })
    assert response.status_code == 400

    with app.app_context():
        assert Transfer.query.count() == 0
        assert StockLevel.query.filter_by(
            item_id=item_id, location_id=get_location('store-room-1').id
        ).one().quantity == 10


def test_partial_update_keeps_stock_bounds(app, manager_client):
    with app.app_context():
        item_id = get_item().id
    url = f'/inventory/items/{item_id}'

    # Stored minimum is 5, stored maximum 40
    response = manager_client.patch(url, json={'maximumStock': 2})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Maximum stock cannot be below minimum stock'

    response = manager_client.patch(url, json={'minimumStock': 50})
    assert response.status_code == 400

    response = manager_client.patch(url, json={'maximumStock': 8})
    assert response.status_code == 200

    response = manager_client.get(url)
    assert response.get_json()['data']['minimumStock'] == 5
    assert response.get_json()['data']['maximumStock'] == 8
