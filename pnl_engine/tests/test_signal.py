"""
Tests for signal decoding and classification.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pnl_engine.errors import ArgumentTypeError, IllegalReversalError, InvalidSignalError
from pnl_engine.interfaces.signal import Action, SignalAction, SignalInterpreter, decode_signal


class TestDecodeSignal:
    """Integer part / advanced flag split."""

    @pytest.mark.parametrize("value,expected", [
        (0.0, (0, False)),
        (3.0, (3, False)),
        (-4.0, (-4, False)),
        (0.5, (0, True)),
        (-0.5, (0, True)),
        (2.5, (2, True)),
        (-2.5, (-2, True)),
    ])
    def test_valid_values(self, value, expected):
        assert decode_signal(value) == expected

    @pytest.mark.parametrize("value", [0.3, 1.25, -2.75, 0.1])
    def test_invalid_fraction(self, value):
        with pytest.raises(InvalidSignalError) as exc_info:
            decode_signal(value, bar_index=7)

        assert exc_info.value.bar_index == 7
        assert exc_info.value.value == value

    def test_non_finite_rejected(self):
        with pytest.raises(ArgumentTypeError):
            decode_signal(float("nan"))


class TestSignalInterpreter:
    """Classification against the current net position."""

    @pytest.fixture
    def interpreter(self):
        return SignalInterpreter()

    def test_zero_is_no_op(self, interpreter):
        action = interpreter.classify(0.0, net_position=5, bar_index=1)

        assert action.kind == SignalAction.NONE
        assert not action.is_trade

    def test_whole_number_is_plain(self, interpreter):
        action = interpreter.classify(-3.0, net_position=2, bar_index=4)

        assert action == Action(SignalAction.PLAIN, -3, 4, -3.0)
        assert action.is_trade

    @pytest.mark.parametrize("value", [0.5, -0.5])
    @pytest.mark.parametrize("net", [-2, 0, 3])
    def test_half_is_close_all(self, interpreter, value, net):
        action = interpreter.classify(value, net_position=net)

        assert action.kind == SignalAction.CLOSE_ALL
        assert action.quantity == 0

    def test_reverse_from_short(self, interpreter):
        action = interpreter.classify(1.5, net_position=-1)

        assert action.kind == SignalAction.REVERSE_TO
        assert action.quantity == 1

    def test_reverse_from_flat(self, interpreter):
        action = interpreter.classify(-2.5, net_position=0)

        assert action.kind == SignalAction.REVERSE_TO
        assert action.quantity == -2

    @pytest.mark.parametrize("value,net", [(1.5, 2), (-1.5, -3), (3.5, 1)])
    def test_reverse_into_held_direction_raises(self, interpreter, value, net):
        with pytest.raises(IllegalReversalError) as exc_info:
            interpreter.classify(value, net_position=net, bar_index=9)

        assert exc_info.value.bar_index == 9
        assert exc_info.value.net_position == net

    def test_validate_reports_first_bad_bar(self, interpreter):
        with pytest.raises(InvalidSignalError) as exc_info:
            interpreter.validate(np.array([1.0, 0.5, 0.0, 1.3, 0.7]))

        assert exc_info.value.bar_index == 3
        assert exc_info.value.value == pytest.approx(1.3)

    def test_validate_accepts_whole_and_half(self, interpreter):
        interpreter.validate(np.array([0.0, 1.0, -2.0, 0.5, -0.5, 3.5, -4.5]))
