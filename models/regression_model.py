#!/usr/bin/env python3
"""
Density Regression Model

Ordinary least-squares fit of death density on case density across regions
(deaths_per_thou ~ cases_per_thou), using scipy's linregress.
"""

import numpy as np
import pandas as pd
from scipy import stats
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RegressionResult:
    """Fitted line and fit statistics"""
    slope: float  # Change in deaths per thousand per case per thousand
    intercept: float
    rvalue: float
    pvalue: float  # Two-sided test of zero slope
    stderr: float  # Standard error of the slope
    intercept_stderr: float
    n_obs: int

    @property
    def r_squared(self) -> float:
        return self.rvalue ** 2

    def summary(self, x_name: str = 'cases_per_thou', y_name: str = 'deaths_per_thou') -> str:
        """Text summary of the fit, one statistic per line."""
        lines = [
            f"Linear model: {y_name} ~ {x_name}",
            "-" * 60,
            f"{'':20s}{'Estimate':>14s}{'Std. Error':>14s}",
            f"{'(Intercept)':20s}{self.intercept:>14.6f}{self.intercept_stderr:>14.6f}",
            f"{x_name:20s}{self.slope:>14.6f}{self.stderr:>14.6f}",
            "-" * 60,
            f"Observations: {self.n_obs}",
            f"R-squared: {self.r_squared:.4f}",
            f"Correlation (r): {self.rvalue:.4f}",
            f"p-value (slope): {self.pvalue:.4g}",
        ]
        return "\n".join(lines)


class DensityRegressionModel:
    """Linear model relating case density to death density"""

    def __init__(self, x_col: str = 'cases_per_thou', y_col: str = 'deaths_per_thou'):
        self.x_col = x_col
        self.y_col = y_col
        self.result: Optional[RegressionResult] = None

    def fit(self, data: pd.DataFrame) -> RegressionResult:
        """
        Fit the model

        Args:
            data: Summary table with x_col and y_col

        Returns:
            Fitted RegressionResult

        Raises:
            ValueError: If columns are missing, fewer than 3 finite rows
                remain, or x is constant
        """
        missing = [col for col in (self.x_col, self.y_col) if col not in data.columns]
        if missing:
            raise ValueError(f"data missing required columns: {missing}")

        x = data[self.x_col].to_numpy(dtype=float)
        y = data[self.y_col].to_numpy(dtype=float)
        finite = np.isfinite(x) & np.isfinite(y)
        x, y = x[finite], y[finite]

        if len(x) < 3:
            raise ValueError(f"Need at least 3 observations to fit, got {len(x)}")
        if np.all(x == x[0]):
            raise ValueError(f"{self.x_col} is constant; slope is undefined")

        fit = stats.linregress(x, y)
        self.result = RegressionResult(
            slope=float(fit.slope),
            intercept=float(fit.intercept),
            rvalue=float(fit.rvalue),
            pvalue=float(fit.pvalue),
            stderr=float(fit.stderr),
            intercept_stderr=float(fit.intercept_stderr),
            n_obs=int(len(x)),
        )
        return self.result

    def predict(self, data: pd.DataFrame, pred_col: str = 'pred') -> pd.DataFrame:
        """Return a copy of data with predicted y appended as pred_col."""
        assert self.result is not None, "Model must be fitted before predicting"
        out = data.copy()
        out[pred_col] = self.result.intercept + self.result.slope * out[self.x_col]
        return out
