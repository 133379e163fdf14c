"""
Shared fixtures: small synthetic versions of the JHU CSSE tables and a fake
HTTP session serving them.
"""

from __future__ import annotations

import matplotlib
import numpy as np
import pandas as pd
import pytest
import requests

from config import ReportConfig

matplotlib.use('Agg')

DATES = ['1/22/20', '1/23/20', '1/24/20']

# Admin2, Province_State, Population, cases by date, deaths by date
US_COUNTIES = [
    ('Autauga', 'Alabama', 1000, [0, 5, 10], [0, 1, 1]),
    ('Baldwin', 'Alabama', 3000, [1, 2, 4], [0, 0, 2]),
    ('Kings', 'New York', 2000, [10, 20, 40], [1, 2, 5]),
    ('King', 'Washington', 5000, [2, 3, 5], [0, 0, 0]),
    (np.nan, 'Diamond Princess', 0, [1, 1, 1], [0, 0, 1]),
]

# Province/State, Country/Region, cases by date, deaths by date
GLOBAL_REGIONS = [
    (np.nan, 'Afghanistan', [0, 1, 3], [0, 0, 1]),
    ('Ontario', 'Canada', [2, 4, 8], [0, 1, 1]),
    (np.nan, 'Atlantis', [1, 1, 1], [0, 0, 0]),
]


def _us_table(with_population: bool, metric_index: int) -> pd.DataFrame:
    rows = []
    for i, (admin2, state, population, cases, deaths) in enumerate(US_COUNTIES):
        key = f"{admin2}, {state}, US" if isinstance(admin2, str) else f"{state}, US"
        row = {
            'UID': 84000000 + i, 'iso2': 'US', 'iso3': 'USA', 'code3': 840,
            'FIPS': 1000.0 + i, 'Admin2': admin2, 'Province_State': state,
            'Country_Region': 'US', 'Lat': 32.5, 'Long_': -86.6, 'Combined_Key': key,
        }
        if with_population:
            row['Population'] = population
        values = (cases, deaths)[metric_index]
        row.update(dict(zip(DATES, values)))
        rows.append(row)
    return pd.DataFrame(rows)


def _global_table(metric_index: int) -> pd.DataFrame:
    rows = []
    for province, country, cases, deaths in GLOBAL_REGIONS:
        row = {'Province/State': province, 'Country/Region': country, 'Lat': 33.9, 'Long': 67.7}
        row.update(dict(zip(DATES, (cases, deaths)[metric_index])))
        rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def config() -> ReportConfig:
    return ReportConfig()


@pytest.fixture
def us_cases_wide() -> pd.DataFrame:
    return _us_table(with_population=False, metric_index=0)


@pytest.fixture
def us_deaths_wide() -> pd.DataFrame:
    return _us_table(with_population=True, metric_index=1)


@pytest.fixture
def global_cases_wide() -> pd.DataFrame:
    return _global_table(metric_index=0)


@pytest.fixture
def global_deaths_wide() -> pd.DataFrame:
    return _global_table(metric_index=1)


@pytest.fixture
def lookup() -> pd.DataFrame:
    columns = ['UID', 'iso2', 'iso3', 'code3', 'FIPS', 'Admin2', 'Province_State',
               'Country_Region', 'Lat', 'Long_', 'Combined_Key', 'Population']
    rows = [
        (4, 'AF', 'AFG', 4, np.nan, np.nan, np.nan, 'Afghanistan', 33.9, 67.7, 'Afghanistan', 1000),
        (12436, 'CA', 'CAN', 124, np.nan, np.nan, 'Ontario', 'Canada', 51.3, -85.3, 'Ontario, Canada', 4000),
        (124, 'CA', 'CAN', 124, np.nan, np.nan, np.nan, 'Canada', 60.0, -95.0, 'Canada', 40000),
        # County rows share (Province_State, Country_Region) but match nothing global
        (84001001, 'US', 'USA', 840, 1001.0, 'Autauga', 'Alabama', 'US', 32.5, -86.6, 'Autauga, Alabama, US', 55869),
        (84001003, 'US', 'USA', 840, 1003.0, 'Baldwin', 'Alabama', 'US', 30.7, -87.7, 'Baldwin, Alabama, US', 223234),
    ]
    return pd.DataFrame(rows, columns=columns)


@pytest.fixture
def raw_tables(us_cases_wide, us_deaths_wide, global_cases_wide, global_deaths_wide, lookup):
    return {
        'us_cases': us_cases_wide,
        'us_deaths': us_deaths_wide,
        'global_cases': global_cases_wide,
        'global_deaths': global_deaths_wide,
        'lookup': lookup,
    }


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True
        return False


class FakeSession:
    """Serves canned responses by URL and records what was requested"""

    def __init__(self, responses: dict):
        self.responses = responses
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_session(config, raw_tables) -> FakeSession:
    responses = {
        config.sources.url_for(name): FakeResponse(table.to_csv(index=False))
        for name, table in raw_tables.items()
    }
    return FakeSession(responses)


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def session_factory():
    return FakeSession
