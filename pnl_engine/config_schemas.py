"""
Configuration schema validation using Pydantic.

Provides the validated accounting configuration and a YAML loader.
Catches configuration errors at load time rather than mid-run.
"""

from pathlib import Path
from typing import Literal, Union
import math

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pnl_engine.constants import DEFAULT_FILL_FIELD, DEFAULT_VALUATION_FIELD


PriceField = Literal["open", "high", "low", "close"]


class AccountingConfig(BaseModel):
    """Parameters for one accounting run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    point_value: float = Field(1.0, description="Currency value of a one-point price move")
    cost_per_unit: float = Field(0.0, ge=0, description="Commission per unit, charged on close")
    fill_field: PriceField = Field(DEFAULT_FILL_FIELD, description="Price field used for lagged fills")
    valuation_field: PriceField = Field(DEFAULT_VALUATION_FIELD, description="Price field used for open equity")
    smooth_open_equity: bool = Field(True, description="Clamp open-equity spikes on the bar before a profitable close")

    @field_validator("point_value", "cost_per_unit")
    @classmethod
    def validate_finite(cls, v, info):
        """Reject NaN and infinities."""
        if not math.isfinite(v):
            raise ValueError(f"{info.field_name} must be finite, got {v}")
        return v

    @model_validator(mode="after")
    def validate_distinct_fields(self):
        """Fills and valuation must read different price fields."""
        if self.fill_field == self.valuation_field:
            raise ValueError(
                f"fill_field and valuation_field must differ, both are '{self.fill_field}'"
            )
        return self


def load_config(path: Union[str, Path], section: str = "accounting") -> AccountingConfig:
    """
    Load an AccountingConfig from a YAML file.

    The parameters may sit at the top level or under a `section` key:

        accounting:
          point_value: 50
          cost_per_unit: 2.5

    Parameters
    ----------
    path : str or Path
        YAML file
    section : str
        Optional top-level key holding the parameters

    Returns
    -------
    AccountingConfig

    Raises
    ------
    pydantic.ValidationError
        If the parameters are invalid
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    if section in raw:
        raw = raw[section] or {}

    return AccountingConfig(**raw)
