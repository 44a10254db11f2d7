"""
End-to-end tests for compute_accounting.
"""

import pytest
import numpy as np
import pandas as pd
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pnl_engine import (
    AccountingConfig,
    ArgumentTypeError,
    IllegalReversalError,
    InvalidSignalError,
    ShapeMismatchError,
    compute_accounting,
)
from pnl_engine.accounting.ledger import Lot
from pnl_engine.data_validation import DataValidator
from pnl_engine.interfaces.bar_schema import PriceBar


@pytest.fixture
def two_field_bars():
    """Four O|C bars rising by 2 per bar."""
    return [[100.0, 101.0], [102.0, 103.0], [104.0, 105.0], [106.0, 107.0]]


@pytest.fixture
def four_field_bars():
    """Same opens/closes with highs and lows."""
    return np.array([
        [100.0, 105.0, 95.0, 101.0],
        [102.0, 108.0, 100.0, 103.0],
        [104.0, 110.0, 101.0, 105.0],
        [106.0, 112.0, 104.0, 107.0],
    ])


def _ramp_bars(n_bars, start=10.0):
    """Bars opening at start, start+1, ... and closing half a point above the open."""
    opens = start + np.arange(n_bars, dtype=float)
    return np.column_stack([opens, opens + 0.5])


class TestScenarios:
    """Hand-computed runs."""

    def test_buy_then_sell(self, two_field_bars):
        result = compute_accounting(two_field_bars, [1, 0, -1, 0], point_value=1.0, cost_per_unit=0.0)

        assert result.cash.tolist() == [0.0, 0.0, 0.0, 4.0]
        assert result.open_equity.tolist() == [0.0, 1.0, 4.0, 0.0]
        assert result.net_liquidation.tolist() == [0.0, 1.0, 4.0, 4.0]
        assert result.returns.tolist() == [0.0, 1.0, 3.0, 0.0]
        assert result.final_position == 0
        assert result.open_lots == ()
        assert len(result.fills) == 1

    def test_close_all(self):
        result = compute_accounting(_ramp_bars(6), [1, 2, 0, 0.5, 0, 0])

        assert result.cash.tolist() == [0.0, 0.0, 0.0, 0.0, 7.0, 0.0]
        assert result.open_equity.tolist() == [0.0, 0.5, 2.5, 7.0, 0.0, 0.0]
        assert result.net_liquidation.tolist() == [0.0, 0.5, 2.5, 7.0, 7.0, 7.0]
        assert result.returns.tolist() == [0.0, 0.5, 2.0, 4.5, 0.0, 0.0]
        assert [fill.lot_bar for fill in result.fills] == [0, 1]

    def test_close_all_with_costs(self):
        result = compute_accounting(_ramp_bars(6), [1, 2, 0, 0.5, 0, 0], point_value=2.0, cost_per_unit=1.0)

        # lots 1 @ 11 and 2 @ 12 closed at 14: (3*1 + 2*2) * 2 - 3 * 1
        assert result.cash[4] == pytest.approx(11.0)
        assert result.compute_statistics()['total_commission'] == pytest.approx(3.0)

    def test_reverse_from_short(self):
        result = compute_accounting(_ramp_bars(5, start=100.0), [-1, 0, 1.5, 0, 0])

        assert result.cash.tolist() == [0.0, 0.0, 0.0, -2.0, 0.0]
        assert result.open_equity.tolist() == [0.0, -0.5, -1.5, 0.5, 1.5]
        assert result.net_liquidation.tolist() == [0.0, -0.5, -1.5, -1.5, -0.5]
        assert result.final_position == 1
        assert result.open_lots == (Lot(2, 1, 103.0),)

    def test_partial_reduce_with_costs(self):
        result = compute_accounting(_ramp_bars(5), [2, 3, -4, 0, 0], cost_per_unit=1.0)

        # 2 @ 11 closed at 13, then 2 of 3 @ 12 closed at 13
        assert result.cash[3] == pytest.approx(2.0)
        assert result.open_lots == (Lot(1, 1, 12.0),)
        assert result.final_position == 1

    def test_plain_flip_matches_reverse(self):
        bars = _ramp_bars(5, start=100.0)

        reverse = compute_accounting(bars, [-1, 0, 1.5, 0, 0])
        flip = compute_accounting(bars, [-1, 0, 2, 0, 0])

        np.testing.assert_array_equal(reverse.net_liquidation, flip.net_liquidation)
        assert reverse.open_lots == flip.open_lots

    def test_last_bar_signal_ignored(self, two_field_bars):
        result = compute_accounting(two_field_bars, [1, 0, 0, -1])

        assert result.final_position == 1
        assert result.cash.sum() == 0.0

    def test_statistics(self):
        stats = compute_accounting(_ramp_bars(5, start=100.0), [-1, 0, 1.5, 0, 0]).compute_statistics()

        assert stats['n_bars'] == 5
        assert stats['n_fills'] == 1
        assert stats['final_position'] == 1
        assert stats['max_drawdown'] == pytest.approx(1.5)
        assert stats['win_rate'] == 0.0


class TestFastPath:

    @pytest.mark.parametrize("signals", [[0, 0.5, 0, 2], [0.3, 0, 0], [0, 0, 0]])
    def test_all_zero(self, signals):
        bars = _ramp_bars(len(signals))

        result = compute_accounting(bars, signals)

        assert not result.cash.any()
        assert not result.open_equity.any()
        assert not result.net_liquidation.any()
        assert not result.returns.any()
        assert len(result) == len(signals)

    def test_empty_input(self):
        result = compute_accounting([], [])

        assert len(result) == 0


class TestPriceFields:

    def test_four_fields_default_to_open_close(self, four_field_bars, two_field_bars):
        four = compute_accounting(four_field_bars, [1, 0, -1, 0])
        two = compute_accounting(two_field_bars, [1, 0, -1, 0])

        np.testing.assert_array_equal(four.net_liquidation, two.net_liquidation)

    def test_valuation_at_high(self, four_field_bars):
        config = AccountingConfig(valuation_field="high")

        result = compute_accounting(four_field_bars, [1, 0, -1, 0], config=config)

        assert result.open_equity.tolist() == [0.0, 6.0, 4.0, 0.0]

    def test_smoothing_disabled(self, four_field_bars):
        config = AccountingConfig(valuation_field="high", smooth_open_equity=False)

        result = compute_accounting(four_field_bars, [1, 0, -1, 0], config=config)

        assert result.open_equity.tolist() == [0.0, 6.0, 8.0, 0.0]

    def test_missing_field(self, two_field_bars):
        with pytest.raises(ShapeMismatchError):
            compute_accounting(two_field_bars, [1, 0, -1, 0], config=AccountingConfig(valuation_field="high"))

    def test_named_dataframe_keeps_index(self):
        index = pd.date_range("2024-01-01", periods=4, freq="D")
        bars = pd.DataFrame(
            {"Close": [101.0, 103.0, 105.0, 107.0], "Open": [100.0, 102.0, 104.0, 106.0]},
            index=index,
        )

        result = compute_accounting(bars, [1, 0, -1, 0])
        df = result.to_dataframe()

        assert list(df.columns) == ["cash", "open_equity", "net_liquidation", "returns"]
        assert df.index.equals(index)
        assert df["net_liquidation"].tolist() == [0.0, 1.0, 4.0, 4.0]

    def test_price_bar_objects(self):
        bars = [PriceBar(open=100.0 + 2 * i, close=101.0 + 2 * i) for i in range(4)]

        result = compute_accounting(bars, np.array([[1], [0], [-1], [0]]))

        assert result.cash[-1] == pytest.approx(4.0)


class TestErrors:

    def test_length_mismatch(self, two_field_bars):
        with pytest.raises(ShapeMismatchError) as exc_info:
            compute_accounting(two_field_bars, [1, 0, -1])

        assert exc_info.value.expected == 4
        assert exc_info.value.actual == 3

    def test_three_price_fields(self):
        with pytest.raises(ShapeMismatchError):
            compute_accounting([[1.0, 2.0, 3.0]] * 3, [1, 0, 0])

    def test_multi_column_signals(self, two_field_bars):
        with pytest.raises(ShapeMismatchError):
            compute_accounting(two_field_bars, np.zeros((4, 2)))

    def test_invalid_fraction(self, two_field_bars):
        with pytest.raises(InvalidSignalError) as exc_info:
            compute_accounting(two_field_bars, [1, 0, 1.3, 0])

        assert exc_info.value.bar_index == 2

    def test_illegal_reversal(self):
        with pytest.raises(IllegalReversalError) as exc_info:
            compute_accounting(_ramp_bars(5), [-2, 0, -1.5, 0, 0])

        assert exc_info.value.bar_index == 2
        assert exc_info.value.net_position == -2

    def test_non_finite_price(self, two_field_bars):
        two_field_bars[1][1] = np.nan

        with pytest.raises(ArgumentTypeError):
            compute_accounting(two_field_bars, [1, 0, -1, 0])

    def test_non_numeric_signals(self, two_field_bars):
        with pytest.raises(ArgumentTypeError):
            compute_accounting(two_field_bars, ["a", "b", "c", "d"])

    @pytest.mark.parametrize("kwargs", [
        {"point_value": True},
        {"point_value": float("inf")},
        {"cost_per_unit": "1"},
        {"cost_per_unit": complex(1, 1)},
        {"cost_per_unit": -5.0},
    ])
    def test_bad_scalars(self, two_field_bars, kwargs):
        with pytest.raises(ArgumentTypeError):
            compute_accounting(two_field_bars, [1, 0, -1, 0], **kwargs)


class TestDataValidator:

    def test_unnamed_signals_pass(self):
        values = DataValidator.validate_signals(np.array([1, 0, -1, 0]))

        assert values.dtype == np.float64
        assert values.tolist() == [1.0, 0.0, -1.0, 0.0]

    def test_named_series_signals_pass(self):
        signals = pd.Series([0.5, 0.0, 2.0], name="position")

        assert DataValidator.validate_signals(signals.to_numpy()).tolist() == [0.5, 0.0, 2.0]

    def test_infinite_signal_rejected(self):
        with pytest.raises(ArgumentTypeError):
            DataValidator.validate_signals(np.array([1.0, np.inf]))

    def test_negative_cost_rejected(self):
        with pytest.raises(ArgumentTypeError):
            DataValidator.validate_scalar(-0.01, "cost_per_unit", non_negative=True)

        assert DataValidator.validate_scalar(-2, "point_value") == -2.0
