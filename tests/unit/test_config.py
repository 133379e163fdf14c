"""
Tests of config
"""

from __future__ import annotations

import pydantic
import pytest

from config import ReportConfig, SourceConfig, TableSchema


def test_default_urls(config):
    assert config.sources.resource_names == [
        'us_cases', 'us_deaths', 'global_cases', 'global_deaths', 'lookup'
    ]
    assert config.sources.url_for('us_deaths').endswith("time_series_covid19_deaths_US.csv")
    assert config.sources.url_for('lookup').endswith("UID_ISO_FIPS_LookUp_Table.csv")


def test_custom_source_base():
    sources = SourceConfig(time_series_url="http://mirror/")

    assert sources.url_for('global_cases') == "http://mirror/time_series_covid19_confirmed_global.csv"


def test_only_us_deaths_carries_population(config):
    assert 'Population' in config.schema_for('us_deaths').keep_columns
    assert 'Population' not in config.schema_for('us_cases').identity_columns


def test_schema_for_unknown(config):
    with pytest.raises(ValueError, match="Unknown time-series table"):
        config.schema_for('lookup')


@pytest.mark.parametrize(
    "kwargs",
    (
        pytest.param({'keep_columns': ['a'], 'value_name': 'recovered'}, id="bad-metric"),
        pytest.param(
            {'keep_columns': ['a', 'b'], 'drop_columns': ['b'], 'value_name': 'cases'},
            id="kept-and-dropped",
        ),
    ),
)
def test_table_schema_invalid(kwargs):
    with pytest.raises(pydantic.ValidationError):
        TableSchema(**kwargs)


def test_config_is_frozen(config):
    with pytest.raises(pydantic.ValidationError):
        config.top_n = 3


def test_config_rejects_unknown_settings():
    with pytest.raises(pydantic.ValidationError):
        ReportConfig(top_m=3)


def test_describe(config, capsys):
    config.describe('date_format')

    out = capsys.readouterr().out
    assert "Parameter: date_format" in out
    assert "1/22/20" in out

    with pytest.raises(ValueError, match="Unknown parameter"):
        config.describe('nope')
