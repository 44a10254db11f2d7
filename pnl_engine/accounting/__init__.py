"""Ledger, cash, equity and aggregation components."""

from .pnl import (
    calc_commission,
    calc_realized_pnl,
    calc_unrealized_pnl,
)

from .cash import (
    RealizedFill,
    CashAccountant,
    realize,
)

from .ledger import (
    Lot,
    PositionLedger,
)

from .equity import (
    EquityValuer,
    smooth_open_equity,
)

from .aggregator import SeriesAggregator, aggregate_series

__all__ = [
    # P&L helpers
    'calc_commission',
    'calc_realized_pnl',
    'calc_unrealized_pnl',
    # Cash booking
    'RealizedFill',
    'CashAccountant',
    'realize',
    # FIFO ledger
    'Lot',
    'PositionLedger',
    # Open equity
    'EquityValuer',
    'smooth_open_equity',
    # Aggregation
    'SeriesAggregator',
    'aggregate_series',
]
