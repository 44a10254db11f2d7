"""
Realized cash booking.

Cash realized while processing the signal of bar i is written into
output bar i + 1: the fill for a decision observed at bar i happens at
the next observation's price.
"""

from dataclasses import dataclass
from typing import Iterable
import numpy as np

from pnl_engine.constants import EXECUTION_LAG_BARS
from pnl_engine.accounting.pnl import calc_commission, calc_realized_pnl


@dataclass(frozen=True)
class RealizedFill:
    """
    One closed lot, or the closed part of a lot.

    Attributes
    ----------
    signal_bar : int
        Bar whose signal triggered the close
    lot_bar : int
        Bar whose signal opened the lot
    quantity : int
        Signed quantity closed (sign of the lot)
    entry_price : float
        Lot entry price
    exit_price : float
        Fill price of the close
    commission : float
        Commission charged on the closed quantity
    pnl : float
        Net realized P&L (after commission)
    """
    signal_bar: int
    lot_bar: int
    quantity: int
    entry_price: float
    exit_price: float
    commission: float
    pnl: float

    @property
    def fill_bar(self) -> int:
        """Output bar the cash is booked on."""
        return self.signal_bar + EXECUTION_LAG_BARS

    @property
    def gross_pnl(self) -> float:
        """P&L before commission."""
        return self.pnl + self.commission


def realize(
    signal_bar: int,
    lot_bar: int,
    entry_price: float,
    quantity: int,
    exit_price: float,
    point_value: float = 1.0,
    cost_per_unit: float = 0.0,
) -> RealizedFill:
    """Build the fill record for closing `quantity` of a lot at `exit_price`."""
    return RealizedFill(
        signal_bar=signal_bar,
        lot_bar=lot_bar,
        quantity=quantity,
        entry_price=entry_price,
        exit_price=exit_price,
        commission=calc_commission(quantity, cost_per_unit),
        pnl=calc_realized_pnl(entry_price, exit_price, quantity, point_value, cost_per_unit),
    )


class CashAccountant:
    """
    Book realized cash into a per-bar series with the execution lag.

    Parameters
    ----------
    n_bars : int
        Length of the output series

    Example
    -------
    >>> accountant = CashAccountant(4)
    >>> accountant.book(2, 4.0)
    3
    >>> accountant.cash.tolist()
    [0.0, 0.0, 0.0, 4.0]
    """

    def __init__(self, n_bars: int):
        self.n_bars = n_bars
        self._cash = np.zeros(n_bars, dtype=np.float64)
        self._commission = 0.0

    def book(self, signal_bar: int, amount: float) -> int:
        """
        Add realized cash for a signal bar.

        Parameters
        ----------
        signal_bar : int
            Bar whose signal produced the cash
        amount : float
            Realized cash, net of commission

        Returns
        -------
        int
            Output bar the cash was written to

        Raises
        ------
        IndexError
            If the signal bar has no following bar to settle on
        """
        fill_bar = signal_bar + EXECUTION_LAG_BARS
        if fill_bar >= self.n_bars:
            raise IndexError(
                f"Signal at bar {signal_bar} settles at bar {fill_bar}, "
                f"past the last bar ({self.n_bars - 1})"
            )
        self._cash[fill_bar] += amount
        return fill_bar

    def book_fills(self, fills: Iterable[RealizedFill]) -> float:
        """Book a batch of fills; returns their total."""
        total = 0.0
        for fill in fills:
            self.book(fill.signal_bar, fill.pnl)
            self._commission += fill.commission
            total += fill.pnl
        return total

    @property
    def cash(self) -> np.ndarray:
        """Realized cash per bar."""
        return self._cash

    @property
    def total_commission(self) -> float:
        """Commission booked through book_fills."""
        return self._commission

    @property
    def total_realized(self) -> float:
        """Sum of all booked cash."""
        return float(self._cash.sum())
