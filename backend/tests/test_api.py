from datetime import datetime, timezone

MINUTE = 60_000


def ms(hour, minute=0):
    return int(datetime(2024, 3, 1, hour, minute, tzinfo=timezone.utc).timestamp() * 1000)


def test_pricing_defaults(client):
    res = client.get('/api/club/pricing')
    assert res.status_code == 200
    data = res.get_json()
    assert data['base_rates'] == {'CAROM': 60000, 'POOL': 80000, 'LIBRE': 50000}
    assert [s['id'] for s in data['time_slots']] == ['morning', 'evening']
    assert data['time_slots'][0]['multiplier'] == 0.7


def test_update_pricing_rejects_invalid_and_keeps_old(client):
    res = client.put('/api/club/pricing', json={'base_rates': {'CAROM': -1}})
    assert res.status_code == 400
    res = client.put('/api/club/pricing', json={'time_slots': [
        {'id': 'bad', 'name': 'Bad', 'start_hour': 8, 'end_hour': 30, 'multiplier': 1},
    ]})
    assert res.status_code == 400
    res = client.put('/api/club/pricing', json={'base_rates': ['CAROM']})
    assert res.status_code == 400
    data = client.get('/api/club/pricing').get_json()
    assert data['base_rates']['CAROM'] == 60000
    assert len(data['time_slots']) == 2


def test_update_pricing_changes_bills(client):
    res = client.put('/api/club/pricing', json={
        'base_rates': {'CAROM': 90000},
        'time_slots': [{'id': 'late', 'name': 'Late', 'start_hour': 20, 'end_hour': 23, 'multiplier': 1.2}],
    })
    assert res.status_code == 200
    data = res.get_json()
    assert data['base_rates'] == {'CAROM': 90000, 'POOL': 80000, 'LIBRE': 50000}
    assert [s['id'] for s in data['time_slots']] == ['late']

    assert client.post(f'/api/club/tables/1/start?now={ms(9)}').status_code == 200
    bill = client.get(f'/api/club/tables/1/bill?now={ms(10)}').get_json()
    # morning discount is gone, full 90 000 for the hour
    assert bill['session_cost'] == 90000
    assert bill['hourly_rate'] == 90000


def test_menu_is_seeded(client):
    items = client.get('/api/club/menu').get_json()
    assert len(items) == 10
    assert {i['category'] for i in items} == {'drink', 'food', 'other'}


def test_list_tables_and_summary(client):
    tables = client.get('/api/club/tables').get_json()
    assert [t['name'] for t in tables] == ['Bàn 01', 'Bàn 02', 'Bàn 03', 'Bàn 04']
    assert all(t['status'] == 'AVAILABLE' and t['total_cost'] == 0 for t in tables)
    client.post(f'/api/club/tables/2/start?now={ms(9)}')
    summary = client.get('/api/club/summary').get_json()
    assert summary == {'total': 4, 'occupied': 1, 'refresh_sec': 30}


def test_create_and_edit_table(client):
    res = client.post('/api/club/tables', json={'name': 'Bàn VIP', 'game_type': 'POOL', 'camera_url': 'rtsp://vip'})
    assert res.status_code == 201
    table = res.get_json()
    assert table['game_type'] == 'POOL'
    assert table['camera_status'] == 'online'
    assert table['has_password'] is False

    assert client.post('/api/club/tables', json={'name': '  '}).status_code == 400
    assert client.post('/api/club/tables', json={'name': 'X', 'game_type': 'SNOOKER'}).status_code == 400

    res = client.put(f"/api/club/tables/{table['id']}", json={'camera_url': '', 'game_type': 'LIBRE'})
    edited = res.get_json()
    assert edited['camera_status'] is None
    assert edited['game_type'] == 'LIBRE'

    res = client.put(f"/api/club/tables/{table['id']}", json={'maintenance': True})
    assert res.get_json()['status'] == 'MAINTENANCE'
    assert client.post(f"/api/club/tables/{table['id']}/start").status_code == 409

    assert client.put('/api/club/tables/999', json={'name': 'Ghost'}).status_code == 404


def test_full_session_checkout(client):
    res = client.post(f'/api/club/tables/1/start?now={ms(9)}')
    assert res.status_code == 200
    assert res.get_json()['status'] == 'OCCUPIED'
    assert res.get_json()['start_time'] == ms(9)
    # cannot start twice
    assert client.post(f'/api/club/tables/1/start?now={ms(9)}').status_code == 409

    assert client.post('/api/club/tables/1/orders', json={'menu_item_id': '4'}).status_code == 201
    res = client.post('/api/club/tables/1/orders', json={'menu_item_id': '4'})
    orders = res.get_json()['orders']
    assert orders == [{'menu_item_id': '4', 'name': 'Sting dâu', 'price': 15000, 'quantity': 2}]

    preview = client.get(f'/api/club/tables/1/bill?now={ms(9, 30)}&discount=10').get_json()
    assert preview['session_cost'] == 21000
    assert preview['service_total'] == 30000
    assert preview['total_amount'] == 45900
    assert preview['duration_minutes'] == 30
    assert preview['hourly_rate'] == 42000

    res = client.post(f'/api/club/tables/1/checkout?now={ms(9, 30)}', json={'discount': 10})
    assert res.status_code == 201
    bill = res.get_json()
    assert bill['total_amount'] == 45900
    assert bill['discount_percent'] == 10
    assert bill['items'][0]['quantity'] == 2

    table = client.get('/api/club/tables').get_json()[0]
    assert table['status'] == 'LOCKED'
    assert table['orders'] == []
    assert table['start_time'] is None

    history = client.get('/api/club/bills').get_json()
    assert len(history) == 1
    assert history[0]['table_name'] == 'Bàn 01'
    assert history[0]['session_cost'] == 21000

    assert client.post('/api/club/tables/1/unlock').get_json()['status'] == 'AVAILABLE'


def test_checkout_clamps_discount(client):
    client.post(f'/api/club/tables/1/start?now={ms(14)}')
    bill = client.post(f'/api/club/tables/1/checkout?now={ms(15)}', json={'discount': 250}).get_json()
    assert bill['discount_percent'] == 100
    assert bill['total_amount'] == 0


def test_checkout_requires_running_session(client):
    assert client.post('/api/club/tables/1/checkout', json={}).status_code == 409
    assert client.post('/api/club/tables/1/unlock').status_code == 409
    assert client.post('/api/club/tables/99/checkout', json={}).status_code == 404


def test_unlock_with_password(client):
    table = client.post('/api/club/tables', json={'name': 'Bàn khóa', 'password': 'secret'}).get_json()
    assert table['has_password'] is True
    tid = table['id']
    client.post(f'/api/club/tables/{tid}/start?now={ms(14)}')
    client.post(f'/api/club/tables/{tid}/checkout?now={ms(14, 20)}', json={})
    assert client.post(f'/api/club/tables/{tid}/unlock', json={'password': 'wrong'}).status_code == 403
    assert client.post(f'/api/club/tables/{tid}/unlock', json={}).status_code == 403
    res = client.post(f'/api/club/tables/{tid}/unlock', json={'password': 'secret'})
    assert res.status_code == 200
    assert res.get_json()['status'] == 'AVAILABLE'


def test_remove_order_item(client):
    client.post(f'/api/club/tables/1/start?now={ms(9)}')
    client.post('/api/club/tables/1/orders', json={'menu_item_id': '7'})
    client.post('/api/club/tables/1/orders', json={'menu_item_id': '7'})
    client.post('/api/club/tables/1/orders', json={'menu_item_id': '1'})
    res = client.delete('/api/club/tables/1/orders/7')
    assert res.status_code == 200
    orders = {o['menu_item_id']: o['quantity'] for o in res.get_json()['orders']}
    assert orders == {'7': 1, '1': 1}
    client.delete('/api/club/tables/1/orders/7')
    orders = client.get('/api/club/tables').get_json()[0]['orders']
    assert [o['menu_item_id'] for o in orders] == ['1']
    assert client.delete('/api/club/tables/1/orders/7').status_code == 404
    assert client.post('/api/club/tables/1/orders', json={'menu_item_id': 'nope'}).status_code == 404
    assert client.post('/api/club/tables/1/orders', json={}).status_code == 400


def test_switch_table_moves_session(client):
    client.post(f'/api/club/tables/1/start?now={ms(9)}')
    client.post('/api/club/tables/1/orders', json={'menu_item_id': '9'})
    client.post(f'/api/club/tables/3/start?now={ms(9)}')

    assert client.post('/api/club/tables/1/switch', json={'target_table_id': 3}).status_code == 409
    assert client.post('/api/club/tables/1/switch', json={'target_table_id': 42}).status_code == 404
    assert client.post('/api/club/tables/1/switch', json={}).status_code == 400

    res = client.post('/api/club/tables/1/switch', json={'target_table_id': 2})
    assert res.status_code == 200
    target = res.get_json()
    assert target['status'] == 'OCCUPIED'
    assert target['start_time'] == ms(9)
    assert target['orders'][0]['name'] == 'Cơm chiên'

    source = client.get('/api/club/tables').get_json()[0]
    assert source['status'] == 'AVAILABLE'
    assert source['orders'] == []
    assert client.post('/api/club/tables/1/switch', json={'target_table_id': 4}).status_code == 409


def test_running_cost_on_table_list(client):
    client.post(f'/api/club/tables/1/start?now={ms(11, 45)}')
    client.post('/api/club/tables/1/orders', json={'menu_item_id': '6'})
    table = client.get(f'/api/club/tables?now={ms(12, 15)}').get_json()[0]
    assert table['session_cost'] == 26000
    assert table['service_total'] == 5000
    assert table['total_cost'] == 31000
    assert client.get('/api/club/tables?now=soon').status_code == 400


def test_maintenance_cannot_release_a_locked_table(client):
    tid = client.post('/api/club/tables', json={'name': 'Bàn khóa', 'password': 'secret'}).get_json()['id']
    client.post(f'/api/club/tables/{tid}/start?now={ms(14)}')
    assert client.put(f'/api/club/tables/{tid}', json={'maintenance': True}).status_code == 409
    client.post(f'/api/club/tables/{tid}/checkout?now={ms(14, 20)}', json={})

    assert client.put(f'/api/club/tables/{tid}', json={'maintenance': False}).status_code == 409
    res = client.put(f'/api/club/tables/{tid}', json={'maintenance': True, 'name': 'Renamed'})
    assert res.status_code == 409
    table = [t for t in client.get('/api/club/tables').get_json() if t['id'] == tid][0]
    assert table['status'] == 'LOCKED'
    assert table['name'] == 'Bàn khóa'


def test_admin_unlock_skips_password(client):
    tid = client.post('/api/club/tables', json={'name': 'Bàn khóa', 'password': 'secret'}).get_json()['id']
    client.post(f'/api/club/tables/{tid}/start?now={ms(14)}')
    client.post(f'/api/club/tables/{tid}/checkout?now={ms(14, 20)}', json={})
    assert client.post(f'/api/club/tables/{tid}/unlock', json={'admin': 'yes'}).status_code == 403
    res = client.post(f'/api/club/tables/{tid}/unlock', json={'admin': True})
    assert res.status_code == 200
    assert res.get_json()['status'] == 'AVAILABLE'
    assert client.post(f'/api/club/tables/{tid}/unlock', json={'admin': True}).status_code == 409


def test_orders_need_a_running_session(client):
    assert client.post('/api/club/tables/1/orders', json={'menu_item_id': '9'}).status_code == 409

    client.post(f'/api/club/tables/1/start?now={ms(9)}')
    client.post(f'/api/club/tables/1/checkout?now={ms(9, 30)}', json={})
    assert client.post('/api/club/tables/1/orders', json={'menu_item_id': '9'}).status_code == 409
    assert client.delete('/api/club/tables/1/orders/9').status_code == 409

    client.post('/api/club/tables/1/unlock')
    client.post(f'/api/club/tables/1/start?now={ms(10)}')
    bill = client.get(f'/api/club/tables/1/bill?now={ms(10, 1)}').get_json()
    assert bill['service_total'] == 0
    assert bill['items'] == []


def test_switch_rejects_non_integer_target(client):
    client.post(f'/api/club/tables/1/start?now={ms(9)}')
    assert client.post('/api/club/tables/1/switch', json={'target_table_id': {'id': 2}}).status_code == 400
    assert client.post('/api/club/tables/1/switch', json={'target_table_id': '2'}).status_code == 400
    assert client.post('/api/club/tables/1/switch', json={'target_table_id': True}).status_code == 400
    assert client.get('/api/club/tables').get_json()[0]['status'] == 'OCCUPIED'
