"""
Canonical Price Bar Contract.

Defines the standard price field names and how host inputs are
normalized into them. Every accepted input shape is converted ONCE, here,
into a DataFrame with canonical columns:

- 2 fields: open | close
- 4 fields: open | high | low | close

Accepted bar inputs:
- pandas DataFrame with named price columns (case-insensitive, extra
  columns such as volume or date are ignored)
- pandas DataFrame or 2-D numpy array with exactly 2 or 4 unnamed columns
- sequence of PriceBar records, mappings, or rows of 2/4 numbers

"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence
import pandas as pd
import numpy as np

from pnl_engine.constants import PRICE_FIELDS, PRICE_LAYOUTS, TWO_FIELD_LAYOUT, FOUR_FIELD_LAYOUT
from pnl_engine.errors import ArgumentTypeError, ShapeMismatchError


@dataclass(frozen=True)
class PriceBar:
    """
    One observation of prices.

    high and low are optional; supply both or neither.
    """
    open: float
    close: float
    high: Optional[float] = None
    low: Optional[float] = None

    @property
    def field_count(self) -> int:
        """Number of price fields supplied (2, 4, or 3 when malformed)."""
        return 2 + (self.high is not None) + (self.low is not None)

    def as_dict(self) -> dict:
        """Canonical field mapping, without missing fields."""
        fields = {"open": self.open, "close": self.close}
        if self.high is not None:
            fields["high"] = self.high
        if self.low is not None:
            fields["low"] = self.low
        return fields


# =============================================================================
# Normalization
# =============================================================================

def to_price_frame(bars: Any) -> pd.DataFrame:
    """
    Normalize bar input to a DataFrame with canonical price columns.

    Parameters
    ----------
    bars : DataFrame, ndarray, or sequence
        Price bars in any accepted shape (see module docstring)

    Returns
    -------
    pd.DataFrame
        Columns in TWO_FIELD_LAYOUT or FOUR_FIELD_LAYOUT order. The index of
        an input DataFrame is preserved. Values are not yet validated.

    Raises
    ------
    ShapeMismatchError
        If the number of price fields is neither 2 nor 4
    ArgumentTypeError
        If bars is not an array-like of rows
    """
    if isinstance(bars, pd.DataFrame):
        return _frame_from_dataframe(bars)

    if isinstance(bars, np.ndarray):
        return _frame_from_array(bars)

    if isinstance(bars, (str, bytes)) or not isinstance(bars, Sequence):
        raise ArgumentTypeError(
            "bars", f"must be a DataFrame, 2-D array or sequence of bars, got {type(bars).__name__}"
        )

    if len(bars) == 0:
        return pd.DataFrame(columns=list(TWO_FIELD_LAYOUT), dtype=float)

    first = bars[0]
    if isinstance(first, PriceBar):
        counts = {bar.field_count for bar in bars}
        if len(counts) != 1:
            raise ShapeMismatchError("Bars mix different numbers of price fields", expected="2 or 4", actual=sorted(counts))
        return _frame_from_dataframe(pd.DataFrame([bar.as_dict() for bar in bars]))

    if isinstance(first, Mapping):
        return _frame_from_dataframe(pd.DataFrame(list(bars)))

    try:
        rows = np.asarray(bars)
    except ValueError as e:
        raise ShapeMismatchError(f"Bars are ragged and cannot form a 2-D price array: {e}") from e
    return _frame_from_array(rows)


def _frame_from_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """Pick canonical columns by name, or fall back to positional layout."""
    lowered = {col: col.lower() for col in df.columns if isinstance(col, str)}
    named = [lowered[col] for col in lowered if lowered[col] in PRICE_FIELDS]

    if set(TWO_FIELD_LAYOUT) <= set(named):
        count = len(set(named))
        if count not in PRICE_LAYOUTS:
            raise ShapeMismatchError(
                f"Bars must carry 'open | close' or 'open | high | low | close', found {sorted(set(named))}",
                expected="2 or 4 price fields",
                actual=count,
            )
        layout = PRICE_LAYOUTS[count]
        renamed = df.rename(columns=lowered)
        return renamed.loc[:, list(layout)].copy()

    if named:
        raise ShapeMismatchError(
            f"Named bars must include both 'open' and 'close', found {sorted(set(named))}"
        )

    values = df.to_numpy()
    frame = _frame_from_array(values)
    frame.index = df.index
    return frame


def _frame_from_array(values: np.ndarray) -> pd.DataFrame:
    """Assign canonical names to a positional 2-D array."""
    if values.ndim != 2:
        raise ShapeMismatchError("Bars must be a 2-dimensional array", expected=2, actual=values.ndim)

    n_fields = values.shape[1]
    if n_fields not in PRICE_LAYOUTS:
        raise ShapeMismatchError(
            "Bars must be in the form 'O | C' or 'O | H | L | C'",
            expected="2 or 4 columns",
            actual=n_fields,
        )

    return pd.DataFrame(values, columns=list(PRICE_LAYOUTS[n_fields]))


def to_signal_array(signals: Any) -> np.ndarray:
    """
    Normalize signal input to a 1-D array (one value per bar).

    Parameters
    ----------
    signals : Series, single-column DataFrame, ndarray, or sequence
        Raw signal values

    Returns
    -------
    np.ndarray
        1-D array; dtype is not yet coerced

    Raises
    ------
    ShapeMismatchError
        If signals are not single-valued per bar
    """
    if isinstance(signals, pd.DataFrame):
        if signals.shape[1] != 1:
            raise ShapeMismatchError("Signals must be a single column", expected=1, actual=signals.shape[1])
        return signals.iloc[:, 0].to_numpy()

    if isinstance(signals, pd.Series):
        return signals.to_numpy()

    if isinstance(signals, (str, bytes)):
        raise ArgumentTypeError("signals", "must be numeric, got a string", signals)

    try:
        values = np.asarray(signals)
    except ValueError as e:
        raise ShapeMismatchError(f"Signals must be single-valued per bar: {e}") from e

    if values.ndim == 2 and values.shape[1] == 1:
        values = values[:, 0]

    if values.ndim != 1:
        raise ShapeMismatchError(
            "Signals must be a single column array",
            expected="shape (N,) or (N, 1)",
            actual=values.shape,
        )

    return values


def signal_index(signals: Any) -> Optional[pd.Index]:
    """Index carried by pandas signal input, if any."""
    if isinstance(signals, (pd.Series, pd.DataFrame)):
        return signals.index
    return None


def has_field(frame: pd.DataFrame, field: str) -> bool:
    """True if the normalized frame carries a price field."""
    return field in frame.columns and field in FOUR_FIELD_LAYOUT
