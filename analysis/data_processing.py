#!/usr/bin/env python3
"""
Data Processing Module

Turns the raw JHU CSSE tables into tidy, joined tables:

1. Reshape each wide time-series table (one column per date) to long form
2. Full outer join cases with deaths per region class (US, global)
3. Left join global rows with lookup-table population and build Combined_Key

Null policy: a metric missing on one side of the cases/deaths join, or a
population missing from the lookup table, is left as NaN. Nothing is filled
with zero. Missing identity strings (empty CSV cells) become "" so that they
join and group like any other value.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from analysis.errors import DateParseError, JoinAmbiguityError, SchemaError
from config import ReportConfig

IDENTITY_RENAMES = {
    'Province/State': 'Province_State',
    'Country/Region': 'Country_Region',
}

STRING_IDENTITY_COLUMNS = ['Admin2', 'Province_State', 'Country_Region', 'Combined_Key']

REGION_KEYS = ['Province_State', 'Country_Region']

ENRICHED_GLOBAL_COLUMNS = [
    'Province_State', 'Country_Region', 'date', 'cases', 'deaths',
    'Population', 'Combined_Key'
]


# ============================================================================
# Reshaper
# ============================================================================

def check_date_headers(headers: Sequence[str], date_format: str = "%m/%d/%y",
                       table: str = 'time series') -> None:
    """
    Check that every non-identity header is a date in date_format.

    A header that reads as a date in some other format (1/24/2020 when M/D/YY
    is expected) is a date error; anything else is an unlisted column.

    Raises:
        SchemaError: If a header is not a date at all
        DateParseError: If a header is a date in the wrong format
    """
    headers = pd.Series([str(col) for col in headers], dtype=object)
    bad = headers[pd.to_datetime(headers, format=date_format, errors='coerce').isna()]
    if bad.empty:
        return

    date_like = pd.to_datetime(bad, format='mixed', errors='coerce').notna()
    unexpected = bad[~date_like].tolist()
    if unexpected:
        raise SchemaError(table, unexpected=unexpected)
    raise DateParseError(table, bad.tolist(), date_format)


def reshape_wide_to_long(df: pd.DataFrame, keep_columns: Sequence[str],
                         drop_columns: Sequence[str] = (), value_name: str = 'cases',
                         table: str = 'time series', date_format: str = "%m/%d/%y") -> pd.DataFrame:
    """
    Convert a wide time-series table to one row per (identity, date).

    Every column that is neither kept nor dropped must be a date header in
    date_format. Dates stay strings here; they are parsed when joining.

    Args:
        df: Wide table with one column per date
        keep_columns: Identity columns to carry into the output
        drop_columns: Identity columns to discard (coordinates, codes)
        value_name: Name of the metric column
        table: Table name used in error messages
        date_format: strptime format of the date headers

    Returns:
        Long table with columns keep_columns + ['date', value_name], ordered
        by input row, then by input date column order

    Raises:
        SchemaError: If a listed column is missing, a column that is not a
            date is not listed, or there are no date columns at all
        DateParseError: If a date header does not match date_format
    """
    keep_columns = list(keep_columns)
    identity = keep_columns + list(drop_columns)

    missing = [col for col in identity if col not in df.columns]
    if missing:
        raise SchemaError(table, missing=missing)

    date_cols = [col for col in df.columns if col not in identity]
    if not date_cols:
        raise SchemaError(table, missing=[f'<date columns ({date_format})>'])
    check_date_headers(date_cols, date_format, table)

    wide = df[keep_columns + date_cols].reset_index(drop=True)
    wide.insert(0, '_row', np.arange(len(wide)))

    long_df = pd.melt(
        wide,
        id_vars=['_row'] + keep_columns,
        value_vars=date_cols,
        var_name='date',
        value_name=value_name
    )

    # melt emits date-major order; a stable sort on the row number restores
    # row-major order with dates still in column order
    long_df = long_df.sort_values('_row', kind='stable')
    return long_df.drop(columns='_row').reset_index(drop=True)


# ============================================================================
# Merger
# ============================================================================

def normalize_identity_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename slash headers to underscore form and blank out missing identity strings."""
    out = df.rename(columns=IDENTITY_RENAMES)
    for col in STRING_IDENTITY_COLUMNS:
        if col in out.columns:
            out[col] = out[col].fillna('').astype(str)
    return out


def assert_unique_keys(df: pd.DataFrame, keys: Sequence[str], table: str) -> None:
    """
    Raise if any key combination occurs more than once.

    Raises:
        JoinAmbiguityError: Listing the duplicated key combinations
    """
    keys = list(keys)
    duplicated = df.duplicated(subset=keys, keep=False)
    if duplicated.any():
        raise JoinAmbiguityError(table, keys, df.loc[duplicated, keys].drop_duplicates())


def parse_dates(values: pd.Series, date_format: str = "%m/%d/%y",
                table: str = 'time series') -> pd.Series:
    """
    Parse date strings, failing on the first table that has any bad value.

    Raises:
        DateParseError: If any value does not match date_format
    """
    parsed = pd.to_datetime(values, format=date_format, errors='coerce')
    bad = parsed.isna()
    if bad.any():
        raise DateParseError(table, values[bad].astype(str).unique(), date_format)
    return parsed


def merge_cases_and_deaths(cases: pd.DataFrame, deaths: pd.DataFrame,
                           date_format: str = "%m/%d/%y",
                           table: str = 'time series') -> pd.DataFrame:
    """
    Full outer join of tidy cases and deaths tables.

    The join keys are the identity columns shared by both sides plus date.
    One side may carry extra identity columns (US deaths carries Population);
    they come along as values. A row present on only one side keeps NaN for
    the other metric.

    Args:
        cases: Tidy table with a 'cases' column
        deaths: Tidy table with a 'deaths' column
        date_format: strptime format of the date strings
        table: Table name used in error messages

    Returns:
        Joined table with parsed dates, ordered by identity then date

    Raises:
        SchemaError: If the identity columns of the two sides are incompatible
            or the region columns are missing
        JoinAmbiguityError: If either side has duplicated keys
        DateParseError: If any date does not parse
    """
    cases = normalize_identity_columns(cases)
    deaths = normalize_identity_columns(deaths)

    for side, metric in ((cases, 'cases'), (deaths, 'deaths')):
        missing = [col for col in ('date', metric) if col not in side.columns]
        if missing:
            raise SchemaError(f"{table} {metric}", missing=missing)

    cases_ids = [col for col in cases.columns if col not in ('date', 'cases')]
    deaths_ids = [col for col in deaths.columns if col not in ('date', 'deaths')]
    if not (set(cases_ids) <= set(deaths_ids) or set(deaths_ids) <= set(cases_ids)):
        raise SchemaError(
            table,
            missing=[col for col in deaths_ids if col not in cases_ids],
            unexpected=[col for col in cases_ids if col not in deaths_ids]
        )

    identity = [col for col in cases_ids if col in deaths_ids]
    missing_regions = [col for col in REGION_KEYS if col not in identity]
    if missing_regions:
        raise SchemaError(table, missing=missing_regions)

    keys = identity + ['date']
    assert_unique_keys(cases, keys, f"{table} cases")
    assert_unique_keys(deaths, keys, f"{table} deaths")

    merged = pd.merge(cases, deaths, on=keys, how='outer')
    merged['date'] = parse_dates(merged['date'], date_format, table)
    return merged.sort_values(keys, kind='stable').reset_index(drop=True)


# ============================================================================
# Population Enricher
# ============================================================================

def build_combined_key(province: pd.Series, country: pd.Series) -> pd.Series:
    """Join province and country with ', ', leaving out empty parts."""
    province = province.fillna('').astype(str)
    country = country.fillna('').astype(str)
    separator = pd.Series(
        np.where((province != '') & (country != ''), ', ', ''),
        index=province.index
    )
    return province + separator + country


def enrich_with_population(global_df: pd.DataFrame, lookup: pd.DataFrame,
                           lookup_columns: Sequence[str] = ('Province_State', 'Country_Region', 'Population'),
                           drop_zero_cases: bool = True) -> pd.DataFrame:
    """
    Left join population onto the merged global table and add Combined_Key.

    Args:
        global_df: Output of merge_cases_and_deaths for the global tables
        lookup: Raw UID/ISO/FIPS lookup table
        lookup_columns: Lookup columns to keep; UID, FIPS and the rest are dropped
        drop_zero_cases: Remove rows without a positive case count first

    Returns:
        Enriched table with ENRICHED_GLOBAL_COLUMNS. Rows with no lookup
        match keep NaN Population.

    Raises:
        SchemaError: If the lookup table lacks a required column
        JoinAmbiguityError: If a lookup key matching the global table is
            duplicated, which would multiply rows
    """
    lookup_columns = list(lookup_columns)
    missing = [col for col in lookup_columns if col not in lookup.columns]
    if missing:
        raise SchemaError('lookup', missing=missing)

    lookup = normalize_identity_columns(lookup[lookup_columns])
    df = normalize_identity_columns(global_df)

    if drop_zero_cases:
        df = df.loc[df['cases'] > 0]

    # Duplicated lookup keys only matter where they would actually match
    matched = pd.merge(lookup, df[REGION_KEYS].drop_duplicates(), on=REGION_KEYS, how='inner')
    assert_unique_keys(matched, REGION_KEYS, 'lookup')

    enriched = pd.merge(df, lookup, on=REGION_KEYS, how='left')
    enriched['Combined_Key'] = build_combined_key(
        enriched['Province_State'], enriched['Country_Region']
    )
    return enriched[ENRICHED_GLOBAL_COLUMNS].reset_index(drop=True)


# ============================================================================
# Processor
# ============================================================================

class DataProcessor:
    """Runs the reshaping and joining steps for both region classes."""

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()

    def reshape(self, raw: pd.DataFrame, name: str) -> pd.DataFrame:
        """Reshape the named raw time-series table using its configured schema."""
        schema = self.config.schema_for(name)
        return reshape_wide_to_long(
            raw,
            keep_columns=schema.keep_columns,
            drop_columns=schema.drop_columns,
            value_name=schema.value_name,
            table=name,
            date_format=self.config.date_format
        )

    def process_us_data(self, us_cases: pd.DataFrame, us_deaths: pd.DataFrame) -> pd.DataFrame:
        """
        Build the tidy US county table.

        Returns:
            Columns Admin2, Province_State, Country_Region, Combined_Key,
            date, cases, Population, deaths
        """
        print("Processing US time series...")
        us = merge_cases_and_deaths(
            self.reshape(us_cases, 'us_cases'),
            self.reshape(us_deaths, 'us_deaths'),
            date_format=self.config.date_format,
            table='US'
        )
        print(f"Processed US data: {len(us)} county-date records")
        return us

    def process_global_data(self, global_cases: pd.DataFrame, global_deaths: pd.DataFrame,
                            lookup: pd.DataFrame) -> pd.DataFrame:
        """Build the tidy, population-enriched global table."""
        print("Processing global time series...")
        merged = merge_cases_and_deaths(
            self.reshape(global_cases, 'global_cases'),
            self.reshape(global_deaths, 'global_deaths'),
            date_format=self.config.date_format,
            table='global'
        )
        enriched = enrich_with_population(
            merged, lookup,
            lookup_columns=self.config.lookup_columns,
            drop_zero_cases=self.config.drop_zero_cases
        )
        n_missing = enriched['Population'].isna().sum()
        print(f"Processed global data: {len(enriched)} region-date records "
              f"({n_missing} without population)")
        return enriched

    def run_all_processing(self, raw_tables: Dict[str, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
        """
        Run all processing steps.

        Args:
            raw_tables: Raw tables keyed by resource name (see RawLoader)

        Returns:
            Dictionary with the tidy 'us' and enriched 'global' tables
        """
        missing: List[str] = [name for name in self.config.sources.resource_names
                              if name not in raw_tables]
        if missing:
            raise ValueError(f"Raw tables missing: {missing}")

        return {
            'us': self.process_us_data(raw_tables['us_cases'], raw_tables['us_deaths']),
            'global': self.process_global_data(
                raw_tables['global_cases'], raw_tables['global_deaths'], raw_tables['lookup']
            ),
        }
