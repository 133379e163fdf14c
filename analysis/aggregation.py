#!/usr/bin/env python3
"""
Aggregation Module

Rolls tidy case/death tables up by administrative level and derives rates:

- by state and date (US), with deaths per million
- by country and date, from the state table or from the enriched global table
- daily new cases and deaths per region
- max-to-date summary per region with cases and deaths per thousand

Divide-by-zero policy: per-date deaths_per_mill is computed for every row, so
a zero population yields inf (or NaN for 0/0) rather than an error. The
summary table removes zero-population regions before dividing, so it never
contains non-finite rates.

Sums use min_count=1: a group whose values are all missing stays missing
instead of becoming 0.
"""

from typing import List, Sequence

import pandas as pd

from analysis.errors import SchemaError

STATE_KEYS = ['Province_State', 'Country_Region']
COUNTRY_KEYS = ['Country_Region']
SUMMED_COLUMNS = ['cases', 'deaths', 'Population']


def _require_columns(df: pd.DataFrame, columns: Sequence[str], table: str) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaError(table, missing=missing)


def add_deaths_per_million(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with deaths_per_mill = deaths * 1e6 / Population."""
    out = df.copy()
    out['deaths_per_mill'] = out['deaths'] * 1_000_000 / out['Population']
    return out


def aggregate_by_region(df: pd.DataFrame, region_keys: Sequence[str],
                        table: str = 'table') -> pd.DataFrame:
    """
    Sum cases, deaths and Population per (region, date).

    Population is summed across the grouped rows, which is correct across the
    counties of one date.

    Args:
        df: Tidy table with region_keys, date, cases, deaths, Population
        region_keys: Grouping columns identifying a region
        table: Table name used in error messages

    Returns:
        One row per (region, date) with deaths_per_mill, ordered by region
        then date
    """
    keys = list(region_keys) + ['date']
    _require_columns(df, keys + SUMMED_COLUMNS, table)

    grouped = (
        df.groupby(keys, as_index=False, sort=True)[SUMMED_COLUMNS]
        .sum(min_count=1)
    )
    return add_deaths_per_million(grouped)[keys + SUMMED_COLUMNS + ['deaths_per_mill']]


def aggregate_by_state(us: pd.DataFrame) -> pd.DataFrame:
    """Level 1: US counties rolled up to (state, date)."""
    return aggregate_by_region(us, STATE_KEYS, table='US')


def aggregate_by_country(df: pd.DataFrame) -> pd.DataFrame:
    """Level 2: rows rolled up to (country, date).

    Accepts the state-level table or the enriched global table.
    """
    return aggregate_by_region(df, COUNTRY_KEYS, table='country rollup')


def add_daily_deltas(df: pd.DataFrame, region_keys: Sequence[str]) -> pd.DataFrame:
    """
    Add new_cases and new_deaths as first differences along date per region.

    The first date of each region has no previous value and gets NaN.
    Negative differences (data revisions) are kept as they are.
    """
    keys = list(region_keys)
    _require_columns(df, keys + ['date', 'cases', 'deaths'], 'daily deltas')

    out = df.sort_values(keys + ['date'], kind='stable').reset_index(drop=True)
    grouped = out.groupby(keys, sort=False)
    out['new_cases'] = grouped['cases'].diff()
    out['new_deaths'] = grouped['deaths'].diff()
    return out


def summarize_totals(df: pd.DataFrame, region_keys: Sequence[str]) -> pd.DataFrame:
    """
    Max-to-date summary per region with per-thousand densities.

    The maximum cumulative value over the series stands in for the final
    cumulative value. Regions without positive cases or population are
    removed.

    Args:
        df: Per-date table with cases, deaths and Population
        region_keys: Columns identifying a region

    Returns:
        One row per region with deaths, cases, population, cases_per_thou,
        deaths_per_thou, ordered by deaths_per_thou descending
    """
    keys = list(region_keys)
    _require_columns(df, keys + SUMMED_COLUMNS, 'summary')

    totals = (
        df.groupby(keys, as_index=False)
        .agg(deaths=('deaths', 'max'), cases=('cases', 'max'), population=('Population', 'max'))
    )
    totals = totals.loc[(totals['cases'] > 0) & (totals['population'] > 0)].copy()
    totals['cases_per_thou'] = 1000 * totals['cases'] / totals['population']
    totals['deaths_per_thou'] = 1000 * totals['deaths'] / totals['population']

    return (
        totals.sort_values('deaths_per_thou', ascending=False, kind='stable')
        .reset_index(drop=True)
    )


def rank_regions(summary: pd.DataFrame, n: int = 10, largest: bool = True) -> pd.DataFrame:
    """Top (or bottom) n regions by deaths_per_thou."""
    _require_columns(summary, ['deaths_per_thou'], 'summary')
    if largest:
        ranked = summary.nlargest(n, 'deaths_per_thou')
    else:
        ranked = summary.nsmallest(n, 'deaths_per_thou')
    return ranked.reset_index(drop=True)


def select_region(df: pd.DataFrame, column: str, value: str) -> pd.DataFrame:
    """Rows of one region, e.g. select_region(us_by_state, 'Province_State', 'New York')."""
    _require_columns(df, [column], 'region selection')
    selected = df.loc[df[column] == value]
    if selected.empty:
        raise ValueError(f"No rows with {column} == {value!r}")
    return selected.reset_index(drop=True)


class Aggregator:
    """Builds every aggregate table the report needs from the tidy tables."""

    def __init__(self, top_n: int = 10):
        self.top_n = top_n

    def run_us_aggregation(self, us: pd.DataFrame) -> dict:
        """
        Returns:
            Dictionary with 'by_state' (with deltas), 'totals' (US by date,
            with deltas) and 'state_totals' (summary per state)
        """
        print("Aggregating US data by state and country...")
        by_state = aggregate_by_state(us)
        totals = aggregate_by_country(by_state)
        return {
            'by_state': add_daily_deltas(by_state, STATE_KEYS),
            'totals': add_daily_deltas(totals, COUNTRY_KEYS),
            'state_totals': summarize_totals(by_state, ['Province_State']),
        }

    def run_global_aggregation(self, global_df: pd.DataFrame) -> dict:
        """
        Returns:
            Dictionary with 'by_country' (with deltas) and 'country_totals'
        """
        print("Aggregating global data by country...")
        by_country = aggregate_by_country(global_df)
        return {
            'by_country': add_daily_deltas(by_country, COUNTRY_KEYS),
            'country_totals': summarize_totals(by_country, COUNTRY_KEYS),
        }

    def ranked_tables(self, summary: pd.DataFrame) -> List[pd.DataFrame]:
        """Top-n and bottom-n regions by deaths_per_thou, in that order."""
        return [
            rank_regions(summary, self.top_n, largest=True),
            rank_regions(summary, self.top_n, largest=False),
        ]
