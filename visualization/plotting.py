#!/usr/bin/env python3
"""Plotting Utilities for the COVID-19 Report.

Charts are saved as high-resolution PDFs and closed after saving; tables are
printed to the console.

Functions:
    plot_cumulative: Cumulative cases and deaths over time (log scale).
    plot_daily: Daily new cases and deaths over time (log scale).
    plot_density_fit: Actual vs predicted deaths per thousand.
    print_table: Print a titled preview of a table.
"""

from pathlib import Path
from typing import Optional, Union

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

# Plotting parameters
DPI = 300  # High resolution for publications
FIGSIZE_LARGE = (12, 8)
FIGSIZE_MEDIUM = (10, 6)

CASES_COLOR = 'tab:blue'
DEATHS_COLOR = 'tab:red'


def _setup_style() -> None:
    plt.style.use('default')
    sns.set_palette("husl")


def _save(fig: plt.Figure, save_path: Union[str, Path]) -> Path:
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=DPI, bbox_inches='tight')
    plt.close(fig)
    print(f"Plot saved to {save_path}")
    return save_path


def _plot_series(ax, df: pd.DataFrame, column: str, label: str, color: str) -> None:
    # Log axes cannot show zero or negative values
    positive = df.loc[df[column] > 0]
    ax.plot(positive['date'], positive[column], '-', color=color, label=label, alpha=0.8)
    ax.plot(positive['date'], positive[column], 'o', color=color, markersize=2)


def plot_cumulative(df: pd.DataFrame, title: str, save_path: Union[str, Path]) -> Path:
    """Plot cumulative cases and deaths of one region against date.

    Args:
        df: Per-date table with date, cases and deaths for a single region.
        title: Plot title.
        save_path: Where to save the PDF.

    Returns:
        Path of the saved figure.
    """
    _setup_style()
    df = df.loc[df['cases'] > 0]

    fig, ax = plt.subplots(figsize=FIGSIZE_LARGE)
    _plot_series(ax, df, 'cases', 'cases', CASES_COLOR)
    _plot_series(ax, df, 'deaths', 'deaths', DEATHS_COLOR)

    ax.set_yscale('log')
    ax.set_xlabel('Date')
    ax.set_ylabel('Cumulative count')
    ax.set_title(title)
    ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate(rotation=90)
    fig.tight_layout()
    return _save(fig, save_path)


def plot_daily(df: pd.DataFrame, title: str, save_path: Union[str, Path]) -> Path:
    """Plot daily new cases and deaths of one region against date.

    Days without a positive delta (including revisions) are not drawn on the
    log scale.
    """
    _setup_style()

    fig, ax = plt.subplots(figsize=FIGSIZE_LARGE)
    _plot_series(ax, df, 'new_cases', 'new cases', CASES_COLOR)
    _plot_series(ax, df, 'new_deaths', 'new deaths', DEATHS_COLOR)

    ax.set_yscale('log')
    ax.set_xlabel('Date')
    ax.set_ylabel('Daily count')
    ax.set_title(title)
    ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate(rotation=90)
    fig.tight_layout()
    return _save(fig, save_path)


def plot_density_fit(df: pd.DataFrame, save_path: Union[str, Path],
                     title: str = 'Deaths vs cases per thousand') -> Path:
    """Scatter actual deaths_per_thou (blue) and predictions (red) against cases_per_thou."""
    _setup_style()

    fig, ax = plt.subplots(figsize=FIGSIZE_MEDIUM)
    sns.scatterplot(data=df, x='cases_per_thou', y='deaths_per_thou',
                    color='blue', label='actual', ax=ax)
    sns.scatterplot(data=df, x='cases_per_thou', y='pred',
                    color='red', label='predicted', ax=ax)

    ax.set_xlabel('Cases per thousand')
    ax.set_ylabel('Deaths per thousand')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return _save(fig, save_path)


def print_table(df: pd.DataFrame, title: str, n: Optional[int] = None) -> None:
    """Print a titled table, optionally only its first n rows."""
    shown = df if n is None else df.head(n)
    print(f"\n{title} ({len(df)} rows)")
    print("-" * 70)
    print(shown.to_string(index=False))
