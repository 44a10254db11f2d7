"""Input contracts: price bars and encoded signals."""

from .bar_schema import (
    PriceBar,
    to_price_frame,
    to_signal_array,
    signal_index,
    has_field,
)

from .signal import (
    SignalAction,
    Action,
    SignalInterpreter,
    decode_signal,
)

__all__ = [
    # Bars
    'PriceBar',
    'to_price_frame',
    'to_signal_array',
    'signal_index',
    'has_field',
    # Signals
    'SignalAction',
    'Action',
    'SignalInterpreter',
    'decode_signal',
]
