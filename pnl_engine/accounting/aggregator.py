"""Cumulative series derived from per-bar cash and open equity."""

from typing import Tuple
import numpy as np


class SeriesAggregator:
    """
    Single forward pass producing net liquidation and returns.

    net_liquidation[k] = cash[0] + ... + cash[k] + open_equity[k]
    returns[0] = 0, returns[k] = net_liquidation[k] - net_liquidation[k-1]
    """

    def aggregate(self, cash: np.ndarray, open_equity: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Parameters
        ----------
        cash : np.ndarray
            Realized cash per bar
        open_equity : np.ndarray
            Unrealized P&L per bar (already smoothed)

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            (net_liquidation, returns)
        """
        cash = np.asarray(cash, dtype=np.float64)
        open_equity = np.asarray(open_equity, dtype=np.float64)
        if cash.shape != open_equity.shape:
            raise ValueError(f"cash and open_equity must align, got {cash.shape} and {open_equity.shape}")

        net_liquidation = self.net_liquidation(cash, open_equity)
        return net_liquidation, self.returns(net_liquidation)

    @staticmethod
    def net_liquidation(cash: np.ndarray, open_equity: np.ndarray) -> np.ndarray:
        # cumsum accumulates sequentially, same as a running sum
        return np.cumsum(cash) + open_equity

    @staticmethod
    def returns(net_liquidation: np.ndarray) -> np.ndarray:
        returns = np.zeros_like(net_liquidation)
        if len(net_liquidation) > 1:
            returns[1:] = np.diff(net_liquidation)
        return returns


def aggregate_series(cash: np.ndarray, open_equity: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Convenience wrapper for SeriesAggregator().aggregate."""
    return SeriesAggregator().aggregate(cash, open_equity)
