from flask_socketio import join_room, leave_room, emit
from app import socketio
from app.models import BilliardTable
from app.services.billing import PricingConfigError
from app.services.club.tables import bill_breakdown


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_club(data=None):
    # Club manager screens receive updates for every table
    join_room('club')
    emit('joined', {'room': 'club'})


def _table_room(data):
    table_id = (data or {}).get('table_id')
    if table_id is None:
        emit('error', {'message': 'table_id is required'})
        return None
    return f"table:{table_id}"


def handle_join_table(data):
    room = _table_room(data)
    if not room:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_table(data):
    room = _table_room(data)
    if not room:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_request_bill(data):
    """Payment view on a table device: same numbers as the manager checkout."""
    data = data or {}
    table_id = data.get('table_id')
    table = BilliardTable.query.get(table_id) if table_id is not None else None
    if not table:
        emit('error', {'message': 'Table not found'})
        return
    try:
        summary = bill_breakdown(table, data.get('now'), data.get('discount', 0))
    except (PricingConfigError, ValueError, TypeError) as exc:
        emit('error', {'message': str(exc)})
        return
    emit('bill', summary)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_club': handle_join_club,
        'join_table': handle_join_table,
        'leave_table': handle_leave_table,
        'request_bill': handle_request_bill,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
        if testing:
            socketio.on_event(event, handler, namespace='/')
