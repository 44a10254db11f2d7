"""
Data validation schemas using Pandera.

Validates price bars, signals and scalar parameters at the boundary,
before any accounting happens. Pandera failures are re-raised as
ArgumentTypeError with context.
"""

from typing import Any
import numbers
import math

import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaError

from pnl_engine.errors import ArgumentTypeError


# Define custom checks following Pandera's check function patterns
def check_finite(series: pd.Series) -> pd.Series:
    """Element-wise: value is neither infinite nor NaN."""
    return pd.Series(np.isfinite(series.to_numpy(dtype=np.float64)), index=series.index)


def check_numeric_dtype(values: np.ndarray, argument: str) -> None:
    """
    Reject dtypes that would silently coerce to float.

    Integers and floats pass; object arrays are left to Pandera coercion.
    Booleans, complex numbers, strings and datetimes are rejected.
    """
    kind = values.dtype.kind
    if kind in "iuf" or kind == "O":
        return
    if kind == "c":
        raise ArgumentTypeError(argument, "must be real, got complex values")
    raise ArgumentTypeError(argument, f"must be numeric, got dtype {values.dtype}")


def _price_column(description: str, required: bool = True) -> pa.Column:
    return pa.Column(
        float,
        checks=[pa.Check(check_finite, name="finite_price", error="price must be finite")],
        nullable=False,
        coerce=True,  # Allow int to float conversion
        required=required,
        description=description,
    )


# Price bars, canonical column names
PriceFrameSchema = pa.DataFrameSchema(
    columns={
        "open": _price_column("Opening price"),
        "high": _price_column("High price", required=False),
        "low": _price_column("Low price", required=False),
        "close": _price_column("Closing price"),
    },
    strict=False,
    name="PriceFrameSchema",
)


# One signal per bar
SignalSeriesSchema = pa.SeriesSchema(
    float,
    checks=[pa.Check(check_finite, name="finite_signal", error="signal must be finite")],
    nullable=False,
    coerce=True,
)


class DataValidator:
    """
    Boundary validator for accounting inputs.
    """

    @staticmethod
    def validate_prices(df: pd.DataFrame, context: str = "") -> pd.DataFrame:
        """
        Validate normalized price bars.

        Args:
            df: DataFrame with canonical price columns
            context: Context string for error messages

        Returns:
            Validated DataFrame with float columns

        Raises:
            ArgumentTypeError: If any price is non-numeric or non-finite
        """
        for column in df.columns:
            check_numeric_dtype(df[column].to_numpy(), "bars")

        try:
            return PriceFrameSchema.validate(df)
        except SchemaError as e:
            error_msg = f"must hold finite numeric prices{_at(context)}: {e}"
            raise ArgumentTypeError("bars", error_msg) from e

    @staticmethod
    def validate_signals(values: np.ndarray, context: str = "") -> np.ndarray:
        """
        Validate raw signals.

        Args:
            values: 1-D array of signals
            context: Context string for error messages

        Returns:
            Validated float64 array

        Raises:
            ArgumentTypeError: If any signal is non-numeric or non-finite
        """
        check_numeric_dtype(values, "signals")

        try:
            validated = SignalSeriesSchema.validate(pd.Series(values))
        except SchemaError as e:
            error_msg = f"must hold finite numeric values{_at(context)}: {e}"
            raise ArgumentTypeError("signals", error_msg) from e
        return validated.to_numpy(dtype=np.float64)

    @staticmethod
    def validate_scalar(value: Any, name: str, non_negative: bool = False) -> float:
        """
        Validate a finite real scalar (booleans rejected).

        Args:
            value: Scalar to check
            name: Argument name for error messages
            non_negative: Also reject values below zero

        Returns:
            The value as float
        """
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise ArgumentTypeError(name, f"must be a real scalar, got {type(value).__name__}", value)

        value = float(value)
        if not math.isfinite(value):
            raise ArgumentTypeError(name, f"must be finite, got {value}", value)
        if non_negative and value < 0:
            raise ArgumentTypeError(name, f"must be non-negative, got {value}", value)
        return value


def _at(context: str) -> str:
    return f" ({context})" if context else ""
