"""
P&L calculation helpers.

Pure functions shared by the ledger (realized) and the equity valuer
(unrealized). Quantities are signed: positive for long, negative for short.

"""


def calc_commission(quantity: int, cost_per_unit: float) -> float:
    """
    Commission for closing a quantity.

    Parameters
    ----------
    quantity : int
        Units being closed (absolute value used)
    cost_per_unit : float
        Commission per unit

    Returns
    -------
    float
        Commission in currency units
    """
    return abs(quantity) * cost_per_unit


def calc_unrealized_pnl(
    entry_price: float,
    mark_price: float,
    quantity: int,
    point_value: float = 1.0,
) -> float:
    """
    Mark-to-market P&L of an open quantity, before costs.

    Parameters
    ----------
    entry_price : float
        Price the quantity was opened at
    mark_price : float
        Current valuation price
    quantity : int
        Signed open quantity
    point_value : float
        Currency value of a one-point price move

    Returns
    -------
    float
        Unrealized P&L

    Examples
    --------
    >>> calc_unrealized_pnl(100.0, 103.0, -2, point_value=50.0)
    -300.0
    """
    return (mark_price - entry_price) * quantity * point_value


def calc_realized_pnl(
    entry_price: float,
    exit_price: float,
    quantity: int,
    point_value: float = 1.0,
    cost_per_unit: float = 0.0,
) -> float:
    """
    Realized P&L of closing a quantity, net of commission.

    Commission is charged once, on the close, scaled by the quantity
    closed. Nothing is charged when a lot is opened.

    Parameters
    ----------
    entry_price : float
        Price the quantity was opened at
    exit_price : float
        Fill price of the close
    quantity : int
        Signed quantity being closed (sign of the lot, not of the trade)
    point_value : float
        Currency value of a one-point price move
    cost_per_unit : float
        Commission per unit closed

    Returns
    -------
    float
        Net realized P&L

    Examples
    --------
    >>> calc_realized_pnl(102.0, 106.0, 1)
    4.0
    >>> calc_realized_pnl(50.0, 45.0, -3, point_value=10.0, cost_per_unit=2.0)
    144.0
    """
    return (exit_price - entry_price) * quantity * point_value - calc_commission(quantity, cost_per_unit)
