"""
FIFO Position Ledger.

Design principles:
- Lots are kept oldest-first in a deque and never reordered
- apply(action) pattern for all state changes
- Closing trades always consume the oldest lot first, whatever its sign
- Every close emits a RealizedFill into an audit trail
- Separate mark_to_market() for unrealized valuation

Invariants:
- sum of lot quantities == net position
- no lot ever holds quantity 0 (fully reduced lots are removed)

"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Tuple
import logging

from pnl_engine.interfaces.signal import Action, SignalAction
from pnl_engine.accounting.cash import RealizedFill, realize
from pnl_engine.accounting.pnl import calc_unrealized_pnl

logger = logging.getLogger(__name__)


@dataclass
class Lot:
    """
    One opening event that has not been fully closed.

    Attributes
    ----------
    opened_at_bar : int
        Bar whose signal opened the lot
    quantity : int
        Signed open quantity (positive = long, negative = short)
    entry_price : float
        Lagged fill price the lot was opened at
    """
    opened_at_bar: int
    quantity: int
    entry_price: float

    @property
    def direction(self) -> int:
        """+1 for long, -1 for short."""
        return 1 if self.quantity > 0 else -1


class PositionLedger:
    """
    Ordered FIFO queue of open lots for a single instrument.

    Scoped to one pass over one input series.

    Examples
    --------
    >>> ledger = PositionLedger()
    >>> ledger.open(0, 1, 100.0)
    Lot(opened_at_bar=0, quantity=1, entry_price=100.0)
    >>> ledger.open(1, 2, 110.0)
    Lot(opened_at_bar=1, quantity=2, entry_price=110.0)
    >>> ledger.reduce_fifo(2, -2, 120.0)
    30.0
    >>> ledger.lots()
    (Lot(opened_at_bar=1, quantity=1, entry_price=110.0),)
    """

    def __init__(self):
        self._lots: Deque[Lot] = deque()
        self._net_position = 0
        self._fills: List[RealizedFill] = []  # Audit trail

    # =========================================================================
    # State Changes
    # =========================================================================

    def apply(
        self,
        action: Action,
        bar: int,
        exec_price: float,
        cost_per_unit: float = 0.0,
        point_value: float = 1.0,
    ) -> List[RealizedFill]:
        """
        Apply a classified signal to the ledger.

        Parameters
        ----------
        action : Action
            Classified signal
        bar : int
            Signal bar (recorded on new lots and fills)
        exec_price : float
            Lagged fill price
        cost_per_unit : float
            Commission per unit closed
        point_value : float
            Currency value of a one-point price move

        Returns
        -------
        list[RealizedFill]
            Fills realized by this action (empty for opens and no-ops)
        """
        n_before = len(self._fills)
        kind = action.kind

        if kind == SignalAction.NONE:
            pass
        elif kind == SignalAction.CLOSE_ALL:
            self.close_all(bar, exec_price, cost_per_unit, point_value)
        elif kind == SignalAction.REVERSE_TO:
            self.close_all(bar, exec_price, cost_per_unit, point_value)
            self.open(bar, action.quantity, exec_price)
        elif kind == SignalAction.PLAIN:
            if self.is_additive(action.quantity):
                self.open(bar, action.quantity, exec_price)
            else:
                self.reduce_fifo(bar, action.quantity, exec_price, cost_per_unit, point_value)
        else:
            raise ValueError(f"Unknown signal action: {kind}")

        return self._fills[n_before:]

    def open(self, bar: int, qty: int, price: float) -> Lot:
        """
        Append a new lot and grow the net position.

        Raises
        ------
        ValueError
            If qty is zero
        """
        if qty == 0:
            raise ValueError(f"Cannot open a zero-quantity lot at bar {bar}")

        lot = Lot(opened_at_bar=bar, quantity=int(qty), entry_price=float(price))
        self._lots.append(lot)
        self._net_position += lot.quantity

        logger.debug("Opened lot %+d @ %s (bar %d), net %+d", lot.quantity, lot.entry_price, bar, self._net_position)
        return lot

    def reduce_fifo(
        self,
        bar: int,
        qty: int,
        exec_price: float,
        cost_per_unit: float = 0.0,
        point_value: float = 1.0,
    ) -> float:
        """
        Reduce the position with a trade opposite to it, oldest lot first.

        If |qty| >= |net position| every lot is closed, and any remainder
        (qty + net) is opened as a new lot at exec_price. Otherwise lots are
        consumed oldest-first; the lot that is larger than what is left to
        reduce is shrunk in place and the walk stops.

        Parameters
        ----------
        bar : int
            Signal bar
        qty : int
            Signed trade quantity, opposite in sign to the net position
        exec_price : float
            Lagged fill price
        cost_per_unit : float
            Commission per unit closed
        point_value : float
            Currency value of a one-point price move

        Returns
        -------
        float
            Realized cash, net of commission

        Raises
        ------
        ValueError
            If the trade does not oppose the current net position
        """
        if qty == 0 or self._net_position == 0 or (qty > 0) == (self._net_position > 0):
            raise ValueError(
                f"reduce_fifo needs a trade opposite to the net position "
                f"(bar {bar}, qty {qty}, net {self._net_position})"
            )

        if abs(qty) >= abs(self._net_position):
            remainder = qty + self._net_position
            realized = self._liquidate(bar, exec_price, cost_per_unit, point_value)
            if remainder != 0:
                self.open(bar, remainder, exec_price)
            return realized

        remaining = abs(qty)
        realized = 0.0
        while remaining:
            front = self._lots[0]
            if abs(front.quantity) > remaining:
                closed = remaining * front.direction
                realized += self._close_portion(front, closed, bar, exec_price, cost_per_unit, point_value)
                front.quantity -= closed
                remaining = 0
            else:
                closed = front.quantity
                realized += self._close_portion(front, closed, bar, exec_price, cost_per_unit, point_value)
                remaining -= abs(closed)
                self._lots.popleft()
            self._net_position -= closed

        return realized

    def close_all(
        self,
        bar: int,
        exec_price: float,
        cost_per_unit: float = 0.0,
        point_value: float = 1.0,
    ) -> float:
        """
        Close every open lot at exec_price. A flat ledger is a no-op.

        Returns
        -------
        float
            Realized cash, net of commission
        """
        return self._liquidate(bar, exec_price, cost_per_unit, point_value)

    def _liquidate(self, bar: int, exec_price: float, cost_per_unit: float, point_value: float) -> float:
        realized = 0.0
        while self._lots:
            lot = self._lots.popleft()
            realized += self._close_portion(lot, lot.quantity, bar, exec_price, cost_per_unit, point_value)
        self._net_position = 0
        return realized

    def _close_portion(
        self,
        lot: Lot,
        quantity: int,
        bar: int,
        exec_price: float,
        cost_per_unit: float,
        point_value: float,
    ) -> float:
        fill = realize(
            signal_bar=bar,
            lot_bar=lot.opened_at_bar,
            entry_price=lot.entry_price,
            quantity=quantity,
            exit_price=float(exec_price),
            point_value=point_value,
            cost_per_unit=cost_per_unit,
        )
        self._fills.append(fill)

        logger.debug("Closed %+d of lot from bar %d @ %s, pnl %s", quantity, lot.opened_at_bar, exec_price, fill.pnl)
        return fill.pnl

    # =========================================================================
    # Valuation
    # =========================================================================

    def mark_to_market(self, price: float, point_value: float = 1.0) -> float:
        """
        Unrealized P&L summed over open lots, oldest first.

        Parameters
        ----------
        price : float
            Valuation price
        point_value : float
            Currency value of a one-point price move
        """
        total = 0.0
        for lot in self._lots:
            total += calc_unrealized_pnl(lot.entry_price, price, lot.quantity, point_value)
        return total

    # =========================================================================
    # Query Methods
    # =========================================================================

    def is_additive(self, qty: int) -> bool:
        """True if a plain trade of qty opens or adds rather than reduces."""
        return (self._net_position <= 0 and qty <= -1) or (self._net_position >= 0 and qty >= 1)

    @property
    def net_position(self) -> int:
        """Signed sum of open lot quantities."""
        return self._net_position

    @property
    def is_flat(self) -> bool:
        return self._net_position == 0

    def lots(self) -> Tuple[Lot, ...]:
        """Snapshot of open lots, oldest first."""
        return tuple(Lot(lot.opened_at_bar, lot.quantity, lot.entry_price) for lot in self._lots)

    def get_fills(self) -> List[RealizedFill]:
        """Audit trail of all realized fills."""
        return list(self._fills)

    def total_realized(self) -> float:
        """Sum of realized P&L across all fills."""
        return sum(fill.pnl for fill in self._fills)

    def __len__(self) -> int:
        return len(self._lots)
