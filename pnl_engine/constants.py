"""
Central constants for signal P&L accounting.

Single source of truth for the signal encoding, the supported price
layouts and the execution-lag convention.
"""

# Signal encoding
# A fractional part of exactly 0.5 marks an advanced instruction:
#   +/-0.5  -> close any open position
#   +/-X.5  -> reverse to a net position of +/-X
ADVANCED_FRACTION = 0.5

# Signals observed at bar i are filled at bar i + 1
EXECUTION_LAG_BARS = 1

# Price layouts (column order for unnamed 2-D input)
TWO_FIELD_LAYOUT = ("open", "close")
FOUR_FIELD_LAYOUT = ("open", "high", "low", "close")

PRICE_LAYOUTS = {
    2: TWO_FIELD_LAYOUT,
    4: FOUR_FIELD_LAYOUT,
}

PRICE_FIELDS = frozenset(FOUR_FIELD_LAYOUT)

# Fills settle at the open, open equity is marked at the close
DEFAULT_FILL_FIELD = "open"
DEFAULT_VALUATION_FIELD = "close"

# Output series, in the order they are reported
OUTPUT_SERIES = ("cash", "open_equity", "net_liquidation", "returns")
