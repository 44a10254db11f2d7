"""
Error taxonomy for accounting runs.

Every error is fatal for the current call; there is no partial result.
Signal errors carry the offending bar index and value so callers can
locate the bad input.
"""

from typing import Any, Optional


class AccountingError(Exception):
    """Base class for all accounting failures."""


class ArgumentTypeError(AccountingError, TypeError):
    """Raised when an argument is not a well-formed finite numeric array or scalar."""

    def __init__(self, argument: str, message: str, value: Any = None):
        self.argument = argument
        self.value = value
        super().__init__(f"Argument '{argument}' {message}")


class ShapeMismatchError(AccountingError, ValueError):
    """Raised when bars and signals cannot be aligned bar-for-bar."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        self.expected = expected
        self.actual = actual
        if expected is not None or actual is not None:
            message = f"{message} (expected {expected}, got {actual})"
        super().__init__(message)


class InvalidSignalError(AccountingError, ValueError):
    """Raised when a signal has a fractional part other than 0.5."""

    def __init__(self, bar_index: Optional[int], value: float):
        self.bar_index = bar_index
        self.value = value
        where = f" at bar {bar_index}" if bar_index is not None else ""
        super().__init__(
            f"Signal {value!r}{where} contains a fractional instruction "
            f"that cannot be interpreted. Only whole numbers and x.5 are allowed."
        )


class IllegalReversalError(AccountingError, ValueError):
    """Raised when a reverse-to-net instruction points the way the position already faces."""

    def __init__(self, bar_index: Optional[int], value: float, net_position: int):
        self.bar_index = bar_index
        self.value = value
        self.net_position = net_position
        side = "long" if net_position > 0 else "short"
        where = f" at bar {bar_index}" if bar_index is not None else ""
        super().__init__(
            f"Reverse instruction {value!r}{where} targets a net {side} position "
            f"while already net {side} ({net_position})"
        )
