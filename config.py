#!/usr/bin/env python3
"""Report Configuration.

This module centralizes every setting of the COVID-19 report using Pydantic
for validation and documentation: where the source tables live, which columns
of each wide table identify a geographic unit, and how the report is
presented.

Identity columns are enumerated explicitly per table. Every other column of a
time-series table must be a date column; anything else is a schema error
rather than a silently melted value.

Usage:
    >>> from config import ReportConfig
    >>> config = ReportConfig()
    >>> config.sources.url_for('us_cases')
    >>> config.us_deaths.keep_columns
    >>> config.describe('top_n')
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, Any, List


# ============================================================================
# Data Sources
# ============================================================================

TIME_SERIES_URL = (
    "https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/"
    "csse_covid_19_data/csse_covid_19_time_series/"
)
LOOKUP_URL = (
    "https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/"
    "csse_covid_19_data/UID_ISO_FIPS_LookUp_Table.csv"
)


class SourceConfig(BaseModel):
    """Locations of the five input tables."""

    model_config = {'frozen': True, 'extra': 'forbid'}

    time_series_url: str = Field(
        default=TIME_SERIES_URL,
        description="Base URL of the JHU CSSE time-series folder. File names are appended to it.",
        json_schema_extra={'source': 'Johns Hopkins CSSE COVID-19 repository'},
    )

    file_names: Dict[str, str] = Field(
        default={
            'us_cases': 'time_series_covid19_confirmed_US.csv',
            'us_deaths': 'time_series_covid19_deaths_US.csv',
            'global_cases': 'time_series_covid19_confirmed_global.csv',
            'global_deaths': 'time_series_covid19_deaths_global.csv',
        },
        description="Time-series file name for each resource.",
    )

    lookup_url: str = Field(
        default=LOOKUP_URL,
        description="Full URL of the UID/ISO/FIPS lookup table carrying population figures.",
        json_schema_extra={'source': 'Johns Hopkins CSSE COVID-19 repository'},
    )

    timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="HTTP timeout for each download. A timeout is fatal; there are no retries.",
        json_schema_extra={'units': 'seconds'},
    )

    @property
    def resource_names(self) -> List[str]:
        """All resource names, time series first."""
        return list(self.file_names) + ['lookup']

    def url_for(self, name: str) -> str:
        """Return the URL of a named resource."""
        if name == 'lookup':
            return self.lookup_url
        if name not in self.file_names:
            raise ValueError(f"Unknown resource: {name}")
        return self.time_series_url + self.file_names[name]


# ============================================================================
# Table Schemas
# ============================================================================

class TableSchema(BaseModel):
    """Identity columns of one wide time-series table."""

    model_config = {'frozen': True, 'extra': 'forbid'}

    keep_columns: List[str] = Field(
        description="Identity columns carried into the tidy table, in output order.",
    )

    drop_columns: List[str] = Field(
        default_factory=list,
        description="Identity columns discarded while reshaping (coordinates, codes).",
    )

    value_name: str = Field(
        description="Name of the metric column in the tidy table.",
    )

    @field_validator('value_name')
    @classmethod
    def validate_value_name(cls, v):
        """Only the two cumulative metrics are reported."""
        if v not in ('cases', 'deaths'):
            raise ValueError(f"value_name must be 'cases' or 'deaths', got {v!r}")
        return v

    @model_validator(mode='after')
    def validate_disjoint(self):
        """A column cannot be both kept and dropped."""
        overlap = set(self.keep_columns) & set(self.drop_columns)
        if overlap:
            raise ValueError(f"Columns both kept and dropped: {sorted(overlap)}")
        return self

    @property
    def identity_columns(self) -> List[str]:
        """Every non-date column the wide table must carry."""
        return self.keep_columns + self.drop_columns


US_CODE_COLUMNS = ['UID', 'iso2', 'iso3', 'code3', 'FIPS', 'Lat', 'Long_']
US_KEEP_COLUMNS = ['Admin2', 'Province_State', 'Country_Region', 'Combined_Key']
GLOBAL_KEEP_COLUMNS = ['Province/State', 'Country/Region']
GLOBAL_COORD_COLUMNS = ['Lat', 'Long']


# ============================================================================
# Report Configuration
# ============================================================================

class ReportConfig(BaseModel):
    """Complete report configuration."""

    model_config = {'frozen': True, 'extra': 'forbid'}

    sources: SourceConfig = Field(default_factory=SourceConfig)

    us_cases: TableSchema = Field(
        default=TableSchema(
            keep_columns=US_KEEP_COLUMNS,
            drop_columns=US_CODE_COLUMNS,
            value_name='cases',
        ),
    )

    us_deaths: TableSchema = Field(
        default=TableSchema(
            keep_columns=US_KEEP_COLUMNS + ['Population'],
            drop_columns=US_CODE_COLUMNS,
            value_name='deaths',
        ),
        description="The US deaths table is the only time series carrying Population.",
    )

    global_cases: TableSchema = Field(
        default=TableSchema(
            keep_columns=GLOBAL_KEEP_COLUMNS,
            drop_columns=GLOBAL_COORD_COLUMNS,
            value_name='cases',
        ),
    )

    global_deaths: TableSchema = Field(
        default=TableSchema(
            keep_columns=GLOBAL_KEEP_COLUMNS,
            drop_columns=GLOBAL_COORD_COLUMNS,
            value_name='deaths',
        ),
    )

    lookup_columns: List[str] = Field(
        default=['Province_State', 'Country_Region', 'Population'],
        description="Lookup columns used for the population join. UID, FIPS and the rest are dropped.",
    )

    date_format: str = Field(
        default="%m/%d/%y",
        description="Format of the per-date column headers.",
        json_schema_extra={'interpretation': 'Month/day/two-digit year, e.g. 1/22/20'},
    )

    drop_zero_cases: bool = Field(
        default=True,
        description="Remove global rows without a positive case count before enrichment.",
    )

    preview_rows: int = Field(
        default=5,
        gt=0,
        description="Number of rows printed when previewing intermediate tables.",
    )

    top_n: int = Field(
        default=10,
        gt=0,
        description="Size of the top and bottom ranked tables.",
    )

    focus_state: str = Field(
        default="New York",
        description="State whose cumulative series gets its own chart.",
    )

    def schema_for(self, name: str) -> TableSchema:
        """Return the table schema for a time-series resource."""
        if name not in ('us_cases', 'us_deaths', 'global_cases', 'global_deaths'):
            raise ValueError(f"Unknown time-series table: {name}")
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        """Export the configuration as a nested dictionary."""
        return self.model_dump()

    def describe(self, param_name: str) -> None:
        """Print documentation for a top-level setting.

        Args:
            param_name: Name of the setting to describe
        """
        fields = type(self).model_fields
        if param_name not in fields:
            raise ValueError(f"Unknown parameter: {param_name}")

        field_info = fields[param_name]
        extra = field_info.json_schema_extra or {}

        print(f"\n{'=' * 70}")
        print(f"Parameter: {param_name}")
        print(f"{'=' * 70}")
        print(f"Value: {getattr(self, param_name)}")
        if field_info.description:
            print(f"\nDescription:")
            print(f"  {field_info.description}")
        if 'interpretation' in extra:
            print(f"\nInterpretation:")
            print(f"  {extra['interpretation']}")


if __name__ == "__main__":
    """Print all settings when run as script."""
    config = ReportConfig()

    print("=" * 80)
    print("REPORT CONFIGURATION")
    print("=" * 80)
    for name in config.sources.resource_names:
        print(f"  {name:15s} = {config.sources.url_for(name)}")
    print("-" * 80)
    for param_name, value in config.to_dict().items():
        if param_name != 'sources':
            print(f"  {param_name:15s} = {value}")
    print("=" * 80)
