"""
Signal P&L accounting for bar-level backtests.

Converts price bars and one encoded trading signal per bar into realized
cash, open equity, net liquidation and returns, using a FIFO lot ledger.

Package Structure:
- interfaces/: Input contracts (PriceBar, signal decoding and classification)
- accounting/: FIFO ledger, cash booking, open equity, aggregation
- engine.py: compute_accounting() entry point and AccountingResult
- config_schemas.py: Validated run configuration (Pydantic, YAML loader)
- data_validation.py: Boundary validation (Pandera)
- logging_config.py: Structured logging (structlog)
- cli.py: Command line interface
"""

from .engine import AccountingResult, compute_accounting
from .config_schemas import AccountingConfig, load_config
from .errors import (
    AccountingError,
    ArgumentTypeError,
    IllegalReversalError,
    InvalidSignalError,
    ShapeMismatchError,
)

__version__ = '0.1.0'

__all__ = [
    'compute_accounting',
    'AccountingResult',
    'AccountingConfig',
    'load_config',
    'AccountingError',
    'ArgumentTypeError',
    'IllegalReversalError',
    'InvalidSignalError',
    'ShapeMismatchError',
]
