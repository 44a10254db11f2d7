"""
Open Equity Valuation.

Marks the open lots of the ledger to each bar's valuation price, then
applies a smoothing pass.

IMPORTANT: valuation uses a different price field (close by default)
than fills (open by default). A position closed at the next bar's fill
price can therefore show an open-equity spike larger than the cash it
actually realized. smooth_open_equity() clamps those spikes to the
realized cash. This is a deliberate, lossy heuristic: it gives some
invalid depictions of open equity between observations, and changing
its trigger changes results numerically.
"""

import logging
import numpy as np
from numba import njit

from pnl_engine.accounting.ledger import PositionLedger

logger = logging.getLogger(__name__)


@njit
def _clamp_closing_spikes(open_equity: np.ndarray, cash: np.ndarray) -> np.ndarray:
    """
    Numba-accelerated smoothing kernel (modifies open_equity in place).

    For t in 1..n-2: when the position is flat at t+1 and t+1 booked a
    profit, open equity at t is replaced by that profit.
    """
    n = len(open_equity)
    for t in range(1, n - 1):
        if open_equity[t] != cash[t + 1] and open_equity[t + 1] == 0 and cash[t + 1] > 0:
            open_equity[t] = cash[t + 1]
    return open_equity


def smooth_open_equity(open_equity: np.ndarray, cash: np.ndarray) -> np.ndarray:
    """
    Clamp open equity on the bar before a profitable close.

    Parameters
    ----------
    open_equity : np.ndarray
        Per-bar unrealized P&L
    cash : np.ndarray
        Per-bar realized cash, same length

    Returns
    -------
    np.ndarray
        Smoothed copy of open_equity

    Examples
    --------
    >>> smooth_open_equity(np.array([0.0, 1.0, 3.0, 0.0]), np.array([0.0, 0.0, 0.0, 4.0])).tolist()
    [0.0, 1.0, 4.0, 0.0]
    """
    smoothed = np.array(open_equity, dtype=np.float64)
    cash = np.ascontiguousarray(cash, dtype=np.float64)

    if smoothed.shape != cash.shape:
        raise ValueError(f"open_equity and cash must align, got {smoothed.shape} and {cash.shape}")

    return _clamp_closing_spikes(smoothed, cash)


class EquityValuer:
    """
    Per-bar unrealized P&L of the open lots.

    Parameters
    ----------
    n_bars : int
        Length of the output series
    point_value : float
        Currency value of a one-point price move

    Example
    -------
    >>> ledger = PositionLedger()
    >>> _ = ledger.open(0, 1, 102.0)
    >>> valuer = EquityValuer(n_bars=4)
    >>> valuer.value(1, ledger, 103.0)
    1.0
    >>> valuer.value(2, ledger, 105.0)
    3.0
    >>> valuer.smooth(np.array([0.0, 0.0, 0.0, 4.0])).tolist()
    [0.0, 1.0, 4.0, 0.0]
    """

    def __init__(self, n_bars: int, point_value: float = 1.0):
        self.n_bars = n_bars
        self.point_value = point_value
        self._open_equity = np.zeros(n_bars, dtype=np.float64)

    def value(self, bar: int, ledger: PositionLedger, price: float) -> float:
        """
        Record unrealized P&L for a bar. Flat ledgers leave the bar at zero.

        Parameters
        ----------
        bar : int
            Output bar to write
        ledger : PositionLedger
            Ledger after this bar's signal has been applied
        price : float
            Valuation price of the bar

        Returns
        -------
        float
            Open equity written for the bar
        """
        if ledger.is_flat:
            return 0.0

        equity = ledger.mark_to_market(price, self.point_value)
        self._open_equity[bar] += equity
        return equity

    def smooth(self, cash: np.ndarray) -> np.ndarray:
        """Smoothed copy of the open equity series (see smooth_open_equity)."""
        smoothed = smooth_open_equity(self._open_equity, cash)
        n_clamped = int(np.count_nonzero(smoothed != self._open_equity))
        if n_clamped:
            logger.debug("Smoothing clamped open equity on %d bar(s)", n_clamped)
        return smoothed

    @property
    def open_equity(self) -> np.ndarray:
        """Unsmoothed open equity per bar."""
        return self._open_equity
