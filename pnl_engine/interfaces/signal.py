"""
Signal decoding and classification.

Design principles:
- One numeric channel per bar carries every instruction
- Whole numbers are plain trades of that signed quantity
- A fractional part of exactly 0.5 is an advanced instruction:
  close-all when the integer part is 0, reverse-to-net otherwise
- Any other fraction is invalid

The interpreter is pure: the same value and net position always give
the same Action.

"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import math

import numpy as np

from pnl_engine.constants import ADVANCED_FRACTION
from pnl_engine.errors import ArgumentTypeError, IllegalReversalError, InvalidSignalError


class SignalAction(Enum):
    """
    What a bar's signal asks the ledger to do.

    NONE: Do nothing
    PLAIN: Buy or sell a signed quantity (additive or reductive)
    CLOSE_ALL: Flatten any open position
    REVERSE_TO: Flatten, then hold a net position of the given quantity
    """
    NONE = "none"
    PLAIN = "plain"
    CLOSE_ALL = "close_all"
    REVERSE_TO = "reverse_to"


@dataclass(frozen=True)
class Action:
    """
    A classified signal.

    Attributes
    ----------
    kind : SignalAction
        Instruction type
    quantity : int
        Signed trade quantity (PLAIN) or target net position (REVERSE_TO).
        Zero for NONE and CLOSE_ALL.
    bar_index : int, optional
        Bar the signal was observed on
    raw_value : float
        Signal value as supplied
    """
    kind: SignalAction
    quantity: int = 0
    bar_index: Optional[int] = None
    raw_value: float = 0.0

    @property
    def is_trade(self) -> bool:
        """True if the action can change the ledger."""
        return self.kind != SignalAction.NONE


def decode_signal(value: float, bar_index: Optional[int] = None) -> Tuple[int, bool]:
    """
    Split a raw signal into its integer quantity and advanced flag.

    Parameters
    ----------
    value : float
        Raw signal value
    bar_index : int, optional
        Bar index, used in error messages

    Returns
    -------
    tuple[int, bool]
        (integer part truncated toward zero, is_advanced)

    Raises
    ------
    InvalidSignalError
        If the fractional part is neither 0 nor 0.5

    Examples
    --------
    >>> decode_signal(3.0)
    (3, False)
    >>> decode_signal(-2.5)
    (-2, True)
    >>> decode_signal(0.5)
    (0, True)
    """
    value = float(value)
    if not math.isfinite(value):
        raise ArgumentTypeError("signals", f"contains a non-finite value at bar {bar_index}", value)

    quantity = int(value)
    fraction = abs(value - quantity)

    if fraction == 0:
        return quantity, False
    if fraction == ADVANCED_FRACTION:
        return quantity, True
    raise InvalidSignalError(bar_index, value)


class SignalInterpreter:
    """
    Classify per-bar signals into ledger actions.

    Examples
    --------
    >>> interpreter = SignalInterpreter()
    >>> interpreter.classify(1.5, net_position=-1).kind
    <SignalAction.REVERSE_TO: 'reverse_to'>
    >>> interpreter.classify(-0.5, net_position=3).kind
    <SignalAction.CLOSE_ALL: 'close_all'>
    """

    def classify(
        self,
        value: float,
        net_position: int,
        bar_index: Optional[int] = None,
    ) -> Action:
        """
        Classify one signal given the current net position.

        Parameters
        ----------
        value : float
            Raw signal value
        net_position : int
            Signed net position before this signal is applied
        bar_index : int, optional
            Bar the signal was observed on

        Returns
        -------
        Action
            Classified instruction

        Raises
        ------
        InvalidSignalError
            Fraction other than 0.5
        IllegalReversalError
            Reverse-to-net into the direction already held
        """
        if value == 0:
            return Action(SignalAction.NONE, 0, bar_index, value)

        quantity, is_advanced = decode_signal(value, bar_index)

        if not is_advanced:
            return Action(SignalAction.PLAIN, quantity, bar_index, value)

        if quantity == 0:
            return Action(SignalAction.CLOSE_ALL, 0, bar_index, value)

        if net_position != 0 and (net_position > 0) == (quantity > 0):
            raise IllegalReversalError(bar_index, value, net_position)

        return Action(SignalAction.REVERSE_TO, quantity, bar_index, value)

    def validate(self, signals: np.ndarray) -> None:
        """
        Check every signal's fraction up front.

        Fails on the first bar whose fractional part is neither 0 nor 0.5.
        The reversal check is not done here because it depends on the
        net position at the time the bar is processed.

        Parameters
        ----------
        signals : np.ndarray
            1-D float array of raw signals

        Raises
        ------
        InvalidSignalError
            At the first offending bar
        """
        signals = np.asarray(signals, dtype=np.float64)
        fractions = np.abs(signals - np.trunc(signals))
        invalid = (fractions != 0) & (fractions != ADVANCED_FRACTION)

        if invalid.any():
            bar_index = int(np.argmax(invalid))
            raise InvalidSignalError(bar_index, float(signals[bar_index]))
