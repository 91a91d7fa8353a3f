from typing import Tuple

import pytz
from flask import current_app

from app import db
from app.models import BaseRate, TimeSlotRow
from app.services.billing import (
    DEFAULT_BASE_RATES,
    DEFAULT_TIME_SLOTS,
    PriceConfig,
    TimeSlot,
    build_price_config,
    build_time_slots,
)


def venue_tz():
    return pytz.timezone(current_app.config.get('VENUE_TIMEZONE', 'Asia/Ho_Chi_Minh'))


def _stored_rates() -> dict:
    return {r.game_type: r.rate for r in BaseRate.query.all()}


def _stored_slot_rows():
    return TimeSlotRow.query.order_by(TimeSlotRow.position, TimeSlotRow.id).all()


def load_pricing() -> Tuple[PriceConfig, Tuple[TimeSlot, ...]]:
    """Read base rates and time slots into immutable billing config.

    Raises PricingConfigError if the stored rates are incomplete.
    """
    rows = _stored_slot_rows()
    return build_price_config(_stored_rates()), build_time_slots(r.to_dict() for r in rows)


def save_pricing(base_rates=None, time_slots=None) -> Tuple[PriceConfig, Tuple[TimeSlot, ...]]:
    """Replace base rates and/or time slots.

    Both parts are validated before anything is written; a partial update
    keeps the stored value of the part that was not supplied.
    """
    merged = _stored_rates()
    merged.update({str(getattr(k, 'value', k)): v for k, v in (base_rates or {}).items()})
    price_config = build_price_config(merged)
    old_rows = _stored_slot_rows()
    if time_slots is not None:
        slots = build_time_slots(time_slots)
    else:
        slots = build_time_slots(r.to_dict() for r in old_rows)

    for game_type, rate in price_config.base_rates:
        row = BaseRate.query.get(game_type.value)
        if row is None:
            row = BaseRate(game_type=game_type.value)
        row.rate = rate
        db.session.add(row)
    if time_slots is not None:
        for row in old_rows:
            db.session.delete(row)
        db.session.flush()
        for position, slot in enumerate(slots):
            db.session.add(TimeSlotRow(
                id=slot.id,
                name=slot.name,
                start_hour=slot.start_hour,
                end_hour=slot.end_hour,
                multiplier=float(slot.multiplier),
                position=position,
            ))
    db.session.commit()
    current_app.logger.info(
        f"[pricing] rates={price_config.to_dict()} slots={[s.id for s in slots]}"
    )
    return price_config, slots


def seed_default_pricing() -> None:
    """Insert default rates and slots where none are stored."""
    for game_type, rate in DEFAULT_BASE_RATES.items():
        if BaseRate.query.get(game_type.value) is None:
            db.session.add(BaseRate(game_type=game_type.value, rate=rate))
    if TimeSlotRow.query.count() == 0:
        for position, slot in enumerate(DEFAULT_TIME_SLOTS):
            row = TimeSlotRow(position=position, **slot.to_dict())
            db.session.add(row)
    db.session.commit()


def pricing_to_dict(price_config: PriceConfig, slots) -> dict:
    return {
        'base_rates': price_config.to_dict(),
        'time_slots': [s.to_dict() for s in slots],
    }
