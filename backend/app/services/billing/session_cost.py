from decimal import Decimal, ROUND_CEILING
from typing import Optional, Sequence

from .pricing import GameType, PriceConfig, TimeSlot, resolve_rate

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
# Session cost is always rounded up to a multiple of this (VND)
ROUNDING_UNIT = 1000


def ceil_to_unit(raw_cost: Decimal, unit: int = ROUNDING_UNIT) -> int:
    return int((raw_cost / unit).to_integral_value(rounding=ROUND_CEILING)) * unit


def calculate_session_cost(start_ms: Optional[int], end_ms: int, game_type: GameType,
                           price_config: PriceConfig, time_slots: Sequence[TimeSlot] = (),
                           tz=None) -> int:
    """Cost of occupying a table from ``start_ms`` to ``end_ms`` (epoch ms).

    The interval is walked one minute at a time; each minute (the last one
    may be partial) is charged at the hourly rate in effect when it begins,
    so a session crossing a slot boundary is priced on both sides of it.
    The total is rounded up to ``ROUNDING_UNIT``.

    A session that never started costs nothing.
    """
    if not start_ms:
        return 0
    start_ms = int(start_ms)
    end_ms = int(end_ms)
    if end_ms <= start_ms:
        return 0

    # Accumulate rate * milliseconds and divide once at the end; summing
    # per-minute fractions of thirds would drift past a rounding boundary.
    rate_ms_total = Decimal(0)
    current = start_ms
    while current < end_ms:
        next_minute = min(current + MINUTE_MS, end_ms)
        hourly = resolve_rate(game_type, current, price_config, time_slots, tz)
        rate_ms_total += hourly * (next_minute - current)
        current = next_minute

    return ceil_to_unit(rate_ms_total / HOUR_MS)
