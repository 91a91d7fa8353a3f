import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import pytz

logger = logging.getLogger(__name__)


class GameType(str, Enum):
    CAROM = 'CAROM'
    POOL = 'POOL'
    LIBRE = 'LIBRE'


class PricingConfigError(ValueError):
    """Raised when base rates or time slots cannot be used for billing."""


@dataclass(frozen=True)
class TimeSlot:
    id: str
    name: str
    start_hour: int
    end_hour: int  # exclusive, up to 24
    multiplier: Decimal  # <1 discount, >1 surcharge

    def matches(self, hour: int) -> bool:
        # end_hour <= start_hour (wrapping past midnight) never matches
        return self.start_hour <= hour < self.end_hour

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'start_hour': self.start_hour,
            'end_hour': self.end_hour,
            'multiplier': float(self.multiplier),
        }


@dataclass(frozen=True)
class PriceConfig:
    base_rates: Tuple[Tuple[GameType, int], ...]

    def base_rate(self, game_type: GameType) -> int:
        for gt, rate in self.base_rates:
            if gt == game_type:
                return rate
        raise PricingConfigError(f'No base rate configured for {game_type}')

    def to_dict(self) -> Dict[str, int]:
        return {gt.value: rate for gt, rate in self.base_rates}


DEFAULT_BASE_RATES: Dict[GameType, int] = {
    GameType.CAROM: 60_000,
    GameType.POOL: 80_000,
    GameType.LIBRE: 50_000,
}

DEFAULT_TIME_SLOTS = (
    TimeSlot('morning', 'Sáng (08:00 - 12:00)', 8, 12, Decimal('0.7')),
    TimeSlot('evening', 'Tối (18:00 - 22:00)', 18, 22, Decimal('1.0')),
)


def _to_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool):
        raise PricingConfigError(f'{field} must be a number')
    try:
        # str() keeps 0.7 as 0.7 instead of its binary float expansion
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PricingConfigError(f'{field} must be a number')
    if not number.is_finite():
        raise PricingConfigError(f'{field} must be a finite number')
    return number


def build_price_config(base_rates: Mapping) -> PriceConfig:
    """Validate a game type -> hourly rate mapping and freeze it.

    Every game type must be present with a non-negative whole rate; keys may
    be ``GameType`` members or their string values.
    """
    rates: Dict[GameType, int] = {}
    for key, value in (base_rates or {}).items():
        try:
            gt = GameType(key)
        except ValueError:
            raise PricingConfigError(f'Unknown game type: {key}')
        rate = _to_decimal(value, f'base rate for {gt.value}')
        if rate < 0 or rate != rate.to_integral_value():
            raise PricingConfigError(f'Base rate for {gt.value} must be a non-negative whole amount')
        rates[gt] = int(rate)
    missing = [gt.value for gt in GameType if gt not in rates]
    if missing:
        raise PricingConfigError(f'Missing base rate for: {", ".join(missing)}')
    return PriceConfig(base_rates=tuple((gt, rates[gt]) for gt in GameType))


def build_time_slots(raw_slots: Iterable) -> Tuple[TimeSlot, ...]:
    """Validate time slot records, keeping their configured order.

    Accepts ``TimeSlot`` instances or dicts with ``id, name, start_hour,
    end_hour, multiplier``.
    """
    slots = []
    seen_ids = set()
    for raw in raw_slots or ():
        if isinstance(raw, TimeSlot):
            raw = raw.to_dict()
        if not isinstance(raw, Mapping):
            raise PricingConfigError('Time slot must be an object')
        slot_id = str(raw.get('id') or '').strip()
        if not slot_id:
            raise PricingConfigError('Time slot id is required')
        if slot_id in seen_ids:
            raise PricingConfigError(f'Duplicate time slot id: {slot_id}')
        seen_ids.add(slot_id)
        hours = []
        # end_hour 24 lets a slot run up to midnight
        for field, last in (('start_hour', 23), ('end_hour', 24)):
            value = raw.get(field)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= last:
                raise PricingConfigError(f'{field} of slot {slot_id} must be an hour between 0 and {last}')
            hours.append(value)
        multiplier = _to_decimal(raw.get('multiplier'), f'multiplier of slot {slot_id}')
        if multiplier <= 0:
            raise PricingConfigError(f'multiplier of slot {slot_id} must be positive')
        start_hour, end_hour = hours
        if end_hour <= start_hour:
            logger.warning(
                'Time slot %s (%sh-%sh) wraps past midnight or is empty and will never match',
                slot_id, start_hour, end_hour,
            )
        slots.append(TimeSlot(slot_id, str(raw.get('name') or slot_id), start_hour, end_hour, multiplier))
    return tuple(slots)


def local_hour(timestamp_ms: int, tz: Optional[pytz.BaseTzInfo] = None) -> int:
    """Hour of day (0-23) of an epoch-millisecond timestamp in the venue timezone.

    With no timezone the host's local time is used.
    """
    seconds = timestamp_ms / 1000.0
    if tz is None:
        return datetime.fromtimestamp(seconds).hour
    return datetime.fromtimestamp(seconds, tz).hour


def resolve_rate(game_type: GameType, timestamp_ms: int, price_config: PriceConfig,
                 time_slots: Sequence[TimeSlot] = (), tz=None) -> Decimal:
    """Hourly rate in effect at ``timestamp_ms``.

    The first configured slot containing the local hour applies its
    multiplier to the base rate; otherwise the base rate is returned as is.
    No rounding happens here.
    """
    base = Decimal(price_config.base_rate(GameType(game_type)))
    hour = local_hour(timestamp_ms, tz)
    for slot in time_slots:
        if slot.matches(hour):
            return base * slot.multiplier
    return base
