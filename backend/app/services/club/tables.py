import json
from typing import Optional

from flask import current_app

from app import db
from app.models import (
    BilliardTable, TableOrder, MenuItem, Bill, now_ms,
    STATUS_AVAILABLE, STATUS_OCCUPIED, STATUS_MAINTENANCE, STATUS_LOCKED,
)
from app.services.billing import (
    assemble_bill,
    calculate_service_total,
    calculate_session_cost,
    clamp_discount,
    resolve_rate,
)
from .pricing_store import load_pricing, venue_tz


class TableStateError(Exception):
    """The requested action is not allowed in the table's current status."""


def bill_breakdown(table: BilliardTable, end_ms: Optional[int] = None, discount_percent=0) -> dict:
    """Running bill for a table, computed from the stored pricing.

    Used by the club manager checkout and by the table device's payment
    view; both must show the same amount for the same instant.
    """
    end_ms = now_ms() if end_ms is None else int(end_ms)
    price_config, slots = load_pricing()
    tz = venue_tz()
    start_ms = table.start_time if table.status == STATUS_OCCUPIED else None
    session_cost = calculate_session_cost(start_ms, end_ms, table.game_type, price_config, slots, tz)
    service_total = calculate_service_total(table.orders)
    discount = clamp_discount(discount_percent)
    payable = assemble_bill(session_cost, service_total, discount)
    duration_ms = max(0, end_ms - start_ms) if start_ms else 0
    return {
        'table_id': table.id,
        'table_name': table.name,
        'game_type': table.game_type,
        'start_time': start_ms,
        'end_time': end_ms,
        'duration_minutes': duration_ms // 60_000,
        'hourly_rate': float(resolve_rate(table.game_type, end_ms, price_config, slots, tz)),
        'session_cost': session_cost,
        'service_total': service_total,
        'discount_percent': float(discount),
        'total_amount': float(payable),
        'items': [o.to_dict() for o in table.orders],
    }


def start_session(table: BilliardTable, start_ms: Optional[int] = None) -> BilliardTable:
    if table.status != STATUS_AVAILABLE:
        raise TableStateError(f'Table {table.name} is not available')
    table.status = STATUS_OCCUPIED
    table.start_time = now_ms() if start_ms is None else int(start_ms)
    db.session.add(table)
    db.session.commit()
    current_app.logger.info(f"[start] table={table.id} type={table.game_type} start={table.start_time}")
    return table


def _require_session(table: BilliardTable) -> None:
    if table.status != STATUS_OCCUPIED:
        raise TableStateError(f'Table {table.name} has no running session')


def set_maintenance(table: BilliardTable, enabled: bool) -> BilliardTable:
    """Toggle maintenance on an idle table; occupied and locked tables are refused."""
    if table.status not in (STATUS_AVAILABLE, STATUS_MAINTENANCE):
        raise TableStateError(f'Table {table.name} is {table.status.lower()}')
    table.status = STATUS_MAINTENANCE if enabled else STATUS_AVAILABLE
    return table


def add_order_item(table: BilliardTable, menu_item: MenuItem) -> TableOrder:
    """Add one unit of a menu item, merging into an existing line."""
    _require_session(table)
    line = next((o for o in table.orders if o.menu_item_id == menu_item.id), None)
    if line is None:
        line = TableOrder(menu_item_id=menu_item.id, name=menu_item.name, price=menu_item.price, quantity=1)
        table.orders.append(line)
    else:
        line.quantity += 1
    db.session.add(table)
    db.session.commit()
    return line


def remove_order_item(table: BilliardTable, menu_item_id: str) -> bool:
    """Remove one unit; the line disappears when its quantity reaches zero."""
    _require_session(table)
    line = next((o for o in table.orders if o.menu_item_id == menu_item_id), None)
    if line is None:
        return False
    if line.quantity > 1:
        line.quantity -= 1
    else:
        table.orders.remove(line)
    db.session.add(table)
    db.session.commit()
    return True


def checkout(table: BilliardTable, discount_percent=0, end_ms: Optional[int] = None) -> Bill:
    """Close the session, record the bill and lock the table."""
    if table.status != STATUS_OCCUPIED:
        raise TableStateError(f'Table {table.name} has no running session')
    summary = bill_breakdown(table, end_ms, discount_percent)
    bill = Bill(
        table_id=table.id,
        table_name=table.name,
        game_type=table.game_type,
        start_time=summary['start_time'],
        end_time=summary['end_time'],
        duration_minutes=summary['duration_minutes'],
        hourly_rate=summary['hourly_rate'],
        session_cost=summary['session_cost'],
        service_total=summary['service_total'],
        discount_percent=summary['discount_percent'],
        total_amount=summary['total_amount'],
        items=json.dumps(summary['items']),
    )
    db.session.add(bill)
    table.orders = []
    table.start_time = None
    table.status = STATUS_LOCKED
    db.session.add(table)
    db.session.commit()
    current_app.logger.info(
        f"[checkout] table={table.id} minutes={bill.duration_minutes} session={bill.session_cost} "
        f"service={bill.service_total} discount={bill.discount_percent} total={bill.total_amount}"
    )
    return bill


def unlock_table(table: BilliardTable, password: Optional[str] = None, admin: bool = False) -> BilliardTable:
    """Release a locked table. The manager's admin unlock skips the password."""
    if table.status != STATUS_LOCKED:
        raise TableStateError(f'Table {table.name} is not locked')
    if not admin and not table.check_password(password):
        raise PermissionError('Wrong table password')
    table.status = STATUS_AVAILABLE
    db.session.add(table)
    db.session.commit()
    if admin:
        current_app.logger.info(f"[unlock] table={table.id} by admin")
    return table


def switch_table(source: BilliardTable, target: BilliardTable) -> BilliardTable:
    """Move a running session (start time and orders) to an available table."""
    if source.id == target.id:
        raise TableStateError('Source and target table are the same')
    if source.status != STATUS_OCCUPIED or not source.start_time:
        raise TableStateError(f'Table {source.name} has no running session')
    if target.status != STATUS_AVAILABLE:
        raise TableStateError(f'Table {target.name} is not available')
    moved = [o.to_dict() for o in source.orders]
    source.orders = []
    db.session.flush()
    target.status = STATUS_OCCUPIED
    target.start_time = source.start_time
    for line in moved:
        target.orders.append(TableOrder(**line))
    source.status = STATUS_AVAILABLE
    source.start_time = None
    db.session.add_all([source, target])
    db.session.commit()
    current_app.logger.info(f"[switch] table={source.id} -> table={target.id}")
    return target
