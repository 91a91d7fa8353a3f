"""Billing domain services: table-time pricing and checkout totals.

Everything in this package is pure: pricing configuration is passed in by
the caller, nothing here touches the database or the socket layer. HTTP
routes and socket handlers both import from here so the club manager
checkout and the in-match payment view always agree on the amount.
"""

from .pricing import (
    GameType,
    PriceConfig,
    TimeSlot,
    PricingConfigError,
    DEFAULT_BASE_RATES,
    DEFAULT_TIME_SLOTS,
    build_price_config,
    build_time_slots,
    resolve_rate,
)
from .session_cost import ROUNDING_UNIT, calculate_session_cost
from .totals import calculate_service_total, clamp_discount, assemble_bill

__all__ = [
    'GameType', 'PriceConfig', 'TimeSlot', 'PricingConfigError',
    'DEFAULT_BASE_RATES', 'DEFAULT_TIME_SLOTS',
    'build_price_config', 'build_time_slots', 'resolve_rate',
    'ROUNDING_UNIT', 'calculate_session_cost',
    'calculate_service_total', 'clamp_discount', 'assemble_bill',
]
