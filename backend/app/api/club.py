from flask import Blueprint, jsonify, request, current_app
from app import db, socketio
from app.models import (
    BilliardTable, MenuItem, Bill, now_ms,
    STATUS_OCCUPIED, STATUS_AVAILABLE,
)
from app.services.billing import GameType, PricingConfigError
from app.services.club.pricing_store import load_pricing, save_pricing, pricing_to_dict
from app.services.club.tables import (
    TableStateError,
    bill_breakdown,
    start_session,
    add_order_item,
    remove_order_item,
    set_maintenance,
    checkout as svc_checkout,
    unlock_table,
    switch_table,
)


club = Blueprint('club', __name__)


def _notify(table_id=None) -> None:
    """Tell connected screens that table state changed."""
    payload = {'table_id': table_id}
    socketio.emit('table_update', payload, to='club', namespace='/ws')
    if table_id is not None:
        socketio.emit('table_update', payload, to=f"table:{table_id}", namespace='/ws')


def _request_now():
    raw = request.args.get('now')
    if raw is None:
        return now_ms()
    try:
        return int(raw)
    except ValueError:
        return None


def _valid_game_type(value) -> bool:
    try:
        GameType(value)
    except ValueError:
        return False
    return True


@club.errorhandler(TableStateError)
def _table_state_error(exc):
    return jsonify({'error': str(exc)}), 409


@club.errorhandler(PricingConfigError)
def _pricing_error(exc):
    return jsonify({'error': str(exc)}), 400


# ---- Pricing ----

@club.route('/pricing', methods=['GET'])
def get_pricing():
    return jsonify(pricing_to_dict(*load_pricing()))


@club.route('/pricing', methods=['PUT'])
def update_pricing():
    data = request.get_json(silent=True) or {}
    base_rates = data.get('base_rates')
    time_slots = data.get('time_slots')
    if base_rates is not None and not isinstance(base_rates, dict):
        return jsonify({'error': 'base_rates must be an object'}), 400
    if time_slots is not None and not isinstance(time_slots, list):
        return jsonify({'error': 'time_slots must be a list'}), 400
    price_config, slots = save_pricing(base_rates, time_slots)
    _notify()
    return jsonify(pricing_to_dict(price_config, slots))


# ---- Menu ----

@club.route('/menu', methods=['GET'])
def get_menu():
    items = MenuItem.query.order_by(MenuItem.category, MenuItem.id).all()
    return jsonify([i.to_dict() for i in items])


# ---- Tables ----

@club.route('/tables', methods=['GET'])
def list_tables():
    now = _request_now()
    if now is None:
        return jsonify({'error': 'now must be epoch milliseconds'}), 400
    payload = []
    for table in BilliardTable.query.order_by(BilliardTable.id).all():
        td = table.to_dict()
        summary = bill_breakdown(table, now)
        td['session_cost'] = summary['session_cost']
        td['service_total'] = summary['service_total']
        td['total_cost'] = summary['session_cost'] + summary['service_total']
        payload.append(td)
    return jsonify(payload)


@club.route('/summary', methods=['GET'])
def table_summary():
    tables = BilliardTable.query.all()
    return jsonify({
        'total': len(tables),
        'occupied': sum(1 for t in tables if t.status == STATUS_OCCUPIED),
        'refresh_sec': int(current_app.config.get('BILL_REFRESH_SEC', 30)),
    })


@club.route('/tables', methods=['POST'])
def create_table():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Table name is required'}), 400
    game_type = data.get('game_type') or GameType.CAROM.value
    if not _valid_game_type(game_type):
        return jsonify({'error': f'Unknown game type: {game_type}'}), 400
    table = BilliardTable(name=name, game_type=game_type, status=STATUS_AVAILABLE)
    table.set_camera(data.get('camera_url'))
    table.set_password(data.get('password'))
    db.session.add(table)
    db.session.commit()
    _notify(table.id)
    return jsonify(table.to_dict()), 201


@club.route('/tables/<int:table_id>', methods=['PUT'])
def update_table(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    data = request.get_json(silent=True) or {}
    if 'maintenance' in data:
        set_maintenance(table, bool(data['maintenance']))
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Table name is required'}), 400
        table.name = name
    if 'game_type' in data:
        if not _valid_game_type(data['game_type']):
            return jsonify({'error': f"Unknown game type: {data['game_type']}"}), 400
        table.game_type = data['game_type']
    if 'camera_url' in data:
        table.set_camera(data.get('camera_url'))
    if 'password' in data:
        table.set_password(data.get('password'))
    db.session.add(table)
    db.session.commit()
    _notify(table.id)
    return jsonify(table.to_dict())


@club.route('/tables/<int:table_id>/start', methods=['POST'])
def start_table(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    now = _request_now()
    if now is None:
        return jsonify({'error': 'now must be epoch milliseconds'}), 400
    start_session(table, now)
    _notify(table.id)
    return jsonify(table.to_dict())


@club.route('/tables/<int:table_id>/orders', methods=['POST'])
def add_order(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    data = request.get_json(silent=True) or {}
    menu_item_id = data.get('menu_item_id')
    if not menu_item_id:
        return jsonify({'error': 'menu_item_id is required'}), 400
    item = MenuItem.query.get(str(menu_item_id))
    if not item:
        return jsonify({'error': 'Menu item not found'}), 404
    add_order_item(table, item)
    _notify(table.id)
    return jsonify(table.to_dict()), 201


@club.route('/tables/<int:table_id>/orders/<string:menu_item_id>', methods=['DELETE'])
def remove_order(table_id, menu_item_id):
    table = BilliardTable.query.get_or_404(table_id)
    if not remove_order_item(table, menu_item_id):
        return jsonify({'error': 'Item not ordered on this table'}), 404
    _notify(table.id)
    return jsonify(table.to_dict())


@club.route('/tables/<int:table_id>/bill', methods=['GET'])
def preview_bill(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    now = _request_now()
    if now is None:
        return jsonify({'error': 'now must be epoch milliseconds'}), 400
    return jsonify(bill_breakdown(table, now, request.args.get('discount', 0)))


@club.route('/tables/<int:table_id>/checkout', methods=['POST'])
def checkout_table(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    data = request.get_json(silent=True) or {}
    now = _request_now()
    if now is None:
        return jsonify({'error': 'now must be epoch milliseconds'}), 400
    bill = svc_checkout(table, data.get('discount', 0), now)
    _notify(table.id)
    return jsonify(bill.to_dict()), 201


@club.route('/tables/<int:table_id>/unlock', methods=['POST'])
def unlock(table_id):
    table = BilliardTable.query.get_or_404(table_id)
    data = request.get_json(silent=True) or {}
    try:
        unlock_table(table, data.get('password'), admin=data.get('admin') is True)
    except PermissionError as exc:
        return jsonify({'error': str(exc)}), 403
    _notify(table.id)
    return jsonify(table.to_dict())


@club.route('/tables/<int:table_id>/switch', methods=['POST'])
def switch(table_id):
    source = BilliardTable.query.get_or_404(table_id)
    data = request.get_json(silent=True) or {}
    target_id = data.get('target_table_id')
    if target_id is None:
        return jsonify({'error': 'target_table_id is required'}), 400
    if isinstance(target_id, bool) or not isinstance(target_id, int):
        return jsonify({'error': 'target_table_id must be an integer'}), 400
    target = BilliardTable.query.get(target_id)
    if not target:
        return jsonify({'error': 'Target table not found'}), 404
    switch_table(source, target)
    _notify(source.id)
    _notify(target.id)
    return jsonify(target.to_dict())


# ---- History ----

@club.route('/bills', methods=['GET'])
def list_bills():
    bills = Bill.query.order_by(Bill.end_time.desc(), Bill.id.desc()).all()
    return jsonify([b.to_dict() for b in bills])
