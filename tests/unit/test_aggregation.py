"""
Tests of analysis.aggregation
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from analysis.aggregation import (
    Aggregator,
    add_daily_deltas,
    aggregate_by_country,
    aggregate_by_state,
    rank_regions,
    select_region,
    summarize_totals,
)
from analysis.data_processing import DataProcessor
from analysis.errors import SchemaError

DAYS = pd.to_datetime(['2020-01-22', '2020-01-23', '2020-01-24', '2020-01-25'])


@pytest.fixture
def us(config, raw_tables):
    return DataProcessor(config).process_us_data(raw_tables['us_cases'], raw_tables['us_deaths'])


@pytest.fixture
def global_df(config, raw_tables):
    return DataProcessor(config).process_global_data(
        raw_tables['global_cases'], raw_tables['global_deaths'], raw_tables['lookup']
    )


def test_aggregate_by_state(us):
    res = aggregate_by_state(us)

    assert list(res.columns) == [
        'Province_State', 'Country_Region', 'date', 'cases', 'deaths', 'Population', 'deaths_per_mill'
    ]
    alabama = res.loc[(res['Province_State'] == 'Alabama') & (res['date'] == DAYS[2])].iloc[0]
    assert alabama['cases'] == 14
    assert alabama['deaths'] == 3
    assert alabama['Population'] == 4000
    assert alabama['deaths_per_mill'] == pytest.approx(750.0)


def test_zero_population_gives_non_finite_rate(us):
    res = aggregate_by_state(us)
    ship = res.loc[res['Province_State'] == 'Diamond Princess'].sort_values('date')

    assert np.isnan(ship['deaths_per_mill'].iloc[0])  # 0 / 0
    assert np.isinf(ship['deaths_per_mill'].iloc[2])  # 1 / 0


def test_rollup_consistency(us):
    by_state = aggregate_by_state(us)
    by_country = aggregate_by_country(by_state)

    state_sums = by_state.groupby(['Country_Region', 'date'])['cases'].sum()
    country = by_country.set_index(['Country_Region', 'date'])['cases']
    pd.testing.assert_series_equal(country, state_sums, check_dtype=False)

    last = by_country.loc[by_country['date'] == DAYS[2]].iloc[0]
    assert last['cases'] == 60
    assert last['deaths'] == 9
    assert last['Population'] == 11000


def test_aggregate_all_missing_stays_missing():
    df = pd.DataFrame({
        'Country_Region': ['A', 'A'],
        'date': [DAYS[0], DAYS[0]],
        'cases': [1, 2],
        'deaths': [0, 1],
        'Population': [np.nan, np.nan],
    })

    res = aggregate_by_country(df)

    assert res['cases'].iloc[0] == 3
    assert np.isnan(res['Population'].iloc[0])
    assert np.isnan(res['deaths_per_mill'].iloc[0])


def test_aggregate_missing_columns(us):
    with pytest.raises(SchemaError, match="Population"):
        aggregate_by_state(us.drop(columns='Population'))


def test_daily_deltas():
    df = pd.DataFrame({
        'Country_Region': ['A'] * 4,
        'date': DAYS[[2, 0, 3, 1]],
        'cases': [15, 10, 12, 10],
        'deaths': [1, 0, 1, 0],
    })

    res = add_daily_deltas(df, ['Country_Region'])

    assert res['date'].tolist() == list(DAYS)
    assert np.isnan(res['new_cases'].iloc[0])
    assert res['new_cases'].iloc[1:].tolist() == [0, 5, -3]
    assert res['new_deaths'].iloc[1:].tolist() == [0, 1, 0]


def test_daily_deltas_restart_per_region():
    df = pd.DataFrame({
        'Country_Region': ['A', 'A', 'B', 'B'],
        'date': DAYS[[0, 1, 0, 1]],
        'cases': [1, 4, 100, 150],
        'deaths': [0, 0, 1, 2],
    })

    res = add_daily_deltas(df, ['Country_Region'])

    assert res['new_cases'].isna().tolist() == [True, False, True, False]
    assert res['new_cases'].dropna().tolist() == [3, 50]


def test_summarize_per_thousand():
    df = pd.DataFrame({
        'Province_State': ['X', 'X'],
        'date': DAYS[:2],
        'cases': [100, 500],
        'deaths': [1, 10],
        'Population': [200000, 200000],
    })

    res = summarize_totals(df, ['Province_State'])

    assert res['cases_per_thou'].iloc[0] == 2.5
    assert res['deaths_per_thou'].iloc[0] == 0.05
    assert list(res.columns) == [
        'Province_State', 'deaths', 'cases', 'population', 'cases_per_thou', 'deaths_per_thou'
    ]


def test_summarize_filters_degenerate_regions():
    df = pd.DataFrame({
        'Province_State': ['ok', 'no population', 'no cases', 'unknown population'],
        'date': [DAYS[0]] * 4,
        'cases': [10, 10, 0, 10],
        'deaths': [1, 1, 0, 1],
        'Population': [1000, 0, 1000, np.nan],
    })

    res = summarize_totals(df, ['Province_State'])

    assert res['Province_State'].tolist() == ['ok']


def test_summarize_ranked_by_deaths_per_thou(us):
    res = summarize_totals(aggregate_by_state(us), ['Province_State'])

    assert res['Province_State'].tolist() == ['New York', 'Alabama', 'Washington']
    assert res['deaths_per_thou'].tolist() == pytest.approx([2.5, 0.75, 0.0])
    assert res['cases_per_thou'].tolist() == pytest.approx([20.0, 3.5, 1.0])


def test_rank_regions():
    summary = pd.DataFrame({'region': list('abcd'), 'deaths_per_thou': [0.3, 0.1, 0.4, 0.2]})

    assert rank_regions(summary, 2, largest=True)['region'].tolist() == ['c', 'a']
    assert rank_regions(summary, 2, largest=False)['region'].tolist() == ['b', 'd']


def test_select_region(us):
    res = select_region(aggregate_by_state(us), 'Province_State', 'New York')

    assert res['cases'].tolist() == [10, 20, 40]


def test_select_region_unknown(us):
    with pytest.raises(ValueError, match="Atlantis"):
        select_region(aggregate_by_state(us), 'Province_State', 'Atlantis')


def test_run_us_aggregation(us):
    res = Aggregator(top_n=2).run_us_aggregation(us)

    totals = res['totals']
    assert totals['cases'].tolist() == [14, 31, 60]
    assert np.isnan(totals['new_cases'].iloc[0])
    assert totals['new_cases'].iloc[1:].tolist() == [17, 29]
    assert 'new_deaths' in res['by_state'].columns
    assert len(res['state_totals']) == 3


def test_run_global_aggregation(global_df):
    res = Aggregator().run_global_aggregation(global_df)

    totals = res['country_totals']
    assert totals['Country_Region'].tolist() == ['Afghanistan', 'Canada']
    assert totals['deaths_per_thou'].tolist() == pytest.approx([1.0, 0.25])

    atlantis = res['by_country'].loc[res['by_country']['Country_Region'] == 'Atlantis']
    assert atlantis['Population'].isna().all()


def test_ranked_tables():
    summary = pd.DataFrame({'region': list('abc'), 'deaths_per_thou': [0.3, 0.1, 0.4]})

    highest, lowest = Aggregator(top_n=1).ranked_tables(summary)

    assert highest['region'].tolist() == ['c']
    assert lowest['region'].tolist() == ['b']
