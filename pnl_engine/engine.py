"""
Bar-level signal accounting.

Turns price bars and one encoded signal per bar into four aligned series:

- cash: realized P&L booked on each bar
- open_equity: unrealized P&L of the open lots on each bar
- net_liquidation: cumulative cash plus current open equity
- returns: bar-over-bar change in net liquidation

Signal at bar i is filled at bar i + 1 (fill field, open by default) and
open equity is marked at the valuation field (close by default). The
final bar's signal is never executed.

Example
-------
>>> result = compute_accounting(
...     [[100, 101], [102, 103], [104, 105], [106, 107]],
...     [1, 0, -1, 0],
...     point_value=1.0,
...     cost_per_unit=0.0,
... )
>>> result.cash.tolist()
[0.0, 0.0, 0.0, 4.0]
>>> result.net_liquidation.tolist()
[0.0, 1.0, 4.0, 4.0]
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from pnl_engine.accounting.aggregator import aggregate_series
from pnl_engine.accounting.cash import CashAccountant, RealizedFill
from pnl_engine.accounting.equity import EquityValuer
from pnl_engine.accounting.ledger import Lot, PositionLedger
from pnl_engine.config_schemas import AccountingConfig
from pnl_engine.constants import OUTPUT_SERIES
from pnl_engine.data_validation import DataValidator
from pnl_engine.errors import AccountingError, ShapeMismatchError
from pnl_engine.interfaces.bar_schema import has_field, signal_index, to_price_frame, to_signal_array
from pnl_engine.interfaces.signal import SignalInterpreter
from pnl_engine.logging_config import InstrumentedLogger

logger = logging.getLogger(__name__)
instrumented = InstrumentedLogger(__name__)


@dataclass
class AccountingResult:
    """
    Output of one accounting run.

    The four series always have one value per input bar.

    Attributes
    ----------
    cash : np.ndarray
        Realized P&L booked per bar
    open_equity : np.ndarray
        Unrealized P&L per bar (after smoothing)
    net_liquidation : np.ndarray
        Cumulative cash plus open equity
    returns : np.ndarray
        Bar-over-bar change of net_liquidation (first bar is 0)
    final_position : int
        Net position left open after the last executed signal
    open_lots : tuple[Lot, ...]
        Lots still open at the end, oldest first
    fills : tuple[RealizedFill, ...]
        Every realized close, in booking order
    index : pd.Index, optional
        Index of the pandas input the series align to
    """
    cash: np.ndarray
    open_equity: np.ndarray
    net_liquidation: np.ndarray
    returns: np.ndarray
    final_position: int = 0
    open_lots: Tuple[Lot, ...] = ()
    fills: Tuple[RealizedFill, ...] = ()
    index: Optional[pd.Index] = field(default=None, repr=False)

    @classmethod
    def zeros(cls, n_bars: int, index: Optional[pd.Index] = None) -> "AccountingResult":
        """Result of a run with no executable trade."""
        return cls(
            cash=np.zeros(n_bars),
            open_equity=np.zeros(n_bars),
            net_liquidation=np.zeros(n_bars),
            returns=np.zeros(n_bars),
            index=index,
        )

    def __len__(self) -> int:
        return len(self.cash)

    def to_dataframe(self) -> pd.DataFrame:
        """Four output series as DataFrame columns, aligned to the input index."""
        df = pd.DataFrame({name: getattr(self, name) for name in OUTPUT_SERIES})
        if self.index is not None:
            df.index = self.index
        return df

    def compute_statistics(self) -> Dict:
        """Summary statistics of the run."""
        n_fills = len(self.fills)
        wins = sum(1 for fill in self.fills if fill.pnl > 0)

        if len(self):
            peaks = np.maximum(np.maximum.accumulate(self.net_liquidation), 0.0)
            max_drawdown = float((peaks - self.net_liquidation).max())
            final_net_liquidation = float(self.net_liquidation[-1])
        else:
            max_drawdown = 0.0
            final_net_liquidation = 0.0

        return {
            'n_bars': len(self),
            'n_fills': n_fills,
            'total_realized': float(self.cash.sum()),
            'total_commission': float(sum(fill.commission for fill in self.fills)),
            'final_open_equity': float(self.open_equity[-1]) if len(self) else 0.0,
            'final_net_liquidation': final_net_liquidation,
            'final_position': self.final_position,
            'max_drawdown': max_drawdown,
            'win_rate': wins / n_fills if n_fills else 0.0,
        }


def compute_accounting(
    bars: Any,
    signals: Any,
    point_value: Optional[float] = None,
    cost_per_unit: Optional[float] = None,
    config: Optional[AccountingConfig] = None,
) -> AccountingResult:
    """
    Run FIFO accounting of encoded signals over price bars.

    Parameters
    ----------
    bars : DataFrame, ndarray, or sequence
        N price bars with 2 (open | close) or 4 (open | high | low | close)
        fields
    signals : Series, ndarray, or sequence
        N signal values, one per bar:
        0 = no action, whole number = buy/sell that quantity,
        +/-0.5 = close all, +/-X.5 = reverse to net +/-X
    point_value : float, optional
        Currency value of a one-point price move (default from config)
    cost_per_unit : float, optional
        Commission per unit, charged on close (default from config)
    config : AccountingConfig, optional
        Field selection and smoothing; point_value / cost_per_unit when not
        given explicitly

    Returns
    -------
    AccountingResult

    Raises
    ------
    ShapeMismatchError
        Bar/signal count differ, multi-column signals, or 3+ price fields
    ArgumentTypeError
        Non-numeric or non-finite prices, signals or scalars, or a negative
        cost_per_unit
    InvalidSignalError
        A fractional part other than 0.5
    IllegalReversalError
        A reverse-to-net instruction into the direction already held
    """
    config = config or AccountingConfig()

    try:
        point_value = DataValidator.validate_scalar(
            config.point_value if point_value is None else point_value, "point_value"
        )
        cost_per_unit = DataValidator.validate_scalar(
            config.cost_per_unit if cost_per_unit is None else cost_per_unit, "cost_per_unit", non_negative=True
        )

        frame = to_price_frame(bars)
        raw_signals = to_signal_array(signals)

        if len(frame) != len(raw_signals):
            raise ShapeMismatchError(
                "The number of bars and the number of signals are different",
                expected=len(frame),
                actual=len(raw_signals),
            )

        for price_field in (config.fill_field, config.valuation_field):
            if not has_field(frame, price_field):
                raise ShapeMismatchError(
                    f"Price field '{price_field}' is not present in the bars",
                    expected="4 price fields",
                    actual=len(frame.columns),
                )

        frame = DataValidator.validate_prices(frame, context="compute_accounting")
        signal_values = DataValidator.validate_signals(raw_signals, context="compute_accounting")
    except AccountingError as e:
        instrumented.log_validation_error("compute_accounting", str(e), metadata={"error_type": type(e).__name__})
        raise

    index = frame.index if isinstance(bars, pd.DataFrame) else signal_index(signals)
    n_bars = len(frame)

    first_trade = _first_trade_bar(signal_values)
    if first_trade is None or first_trade == n_bars - 1:
        logger.debug("No executable trade in %d bars, returning zeros", n_bars)
        return AccountingResult.zeros(n_bars, index=index)

    fill_prices = frame[config.fill_field].to_numpy(dtype=np.float64)
    valuation_prices = frame[config.valuation_field].to_numpy(dtype=np.float64)

    interpreter = SignalInterpreter()
    ledger = PositionLedger()
    accountant = CashAccountant(n_bars)
    valuer = EquityValuer(n_bars, point_value=point_value)

    try:
        interpreter.validate(signal_values)

        for bar in range(n_bars - 1):
            action = interpreter.classify(signal_values[bar], ledger.net_position, bar)
            if action.is_trade:
                fills = ledger.apply(action, bar, fill_prices[bar + 1], cost_per_unit, point_value)
                accountant.book_fills(fills)
            valuer.value(bar + 1, ledger, valuation_prices[bar + 1])
    except AccountingError as e:
        instrumented.log_validation_error(
            "interpret_signals",
            str(e),
            metadata={
                "error_type": type(e).__name__,
                "bar_index": getattr(e, "bar_index", None),
                "value": getattr(e, "value", None),
            },
        )
        raise

    cash = accountant.cash
    open_equity = valuer.smooth(cash) if config.smooth_open_equity else valuer.open_equity.copy()
    net_liquidation, returns = aggregate_series(cash, open_equity)

    result = AccountingResult(
        cash=cash,
        open_equity=open_equity,
        net_liquidation=net_liquidation,
        returns=returns,
        final_position=ledger.net_position,
        open_lots=ledger.lots(),
        fills=tuple(ledger.get_fills()),
        index=index,
    )

    instrumented.log_data_transform(
        "compute_accounting",
        input_data=signal_values,
        output_data=net_liquidation,
        metadata={
            "n_bars": n_bars,
            "n_fields": len(frame.columns),
            "n_fills": len(result.fills),
            "final_position": result.final_position,
        },
    )
    return result


def _first_trade_bar(signals: np.ndarray) -> Optional[int]:
    """Index of the first bar with |signal| >= 1, or None."""
    hits = np.flatnonzero(np.abs(signals) >= 1)
    if hits.size == 0:
        return None
    return int(hits[0])
