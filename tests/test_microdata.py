import logging
from datetime import date

import polars as pl
import pytest

from covid_unemployment.processing.microdata import (
    SERIES_COLUMNS,
    DemographicFilter,
    aggregate_microdata,
    filter_microdata,
    normalize_microdata,
    read_microdata,
)

APRIL = date(2020, 4, 12)


def _row(series: pl.DataFrame, geographic_type: str, code: str) -> dict:
    rows = series.filter(
        pl.col('geographic_type').eq(geographic_type),
        pl.col('geographic_code').eq(code),
    )
    assert rows.height == 1
    return rows.row(0, named=True)


def test_aggregate_national_state_county(cps_extract):
    series = aggregate_microdata(filter_microdata(normalize_microdata(cps_extract)))

    assert series.columns == SERIES_COLUMNS
    assert series['ref_date'].unique().to_list() == [APRIL]

    national = _row(series, 'national', '00')
    assert national['employed'] == pytest.approx(4500.0)
    assert national['unemployed'] == pytest.approx(500.0)
    assert national['labor_force'] == pytest.approx(5000.0)
    assert national['unemployment_rate'] == pytest.approx(10.0)
    assert national['population'] == pytest.approx(5700.0)
    assert national['respondents'] == 5

    california = _row(series, 'state', '06')
    assert california['unemployment_rate'] == pytest.approx(100 * 500 / 3000)

    los_angeles = _row(series, 'county', '06037')
    assert los_angeles['unemployment_rate'] == pytest.approx(100 * 500 / 1500)

    nyc = _row(series, 'county', '36061')
    assert nyc['unemployment_rate'] == 0.0
    assert nyc['participation_rate'] == pytest.approx(100 * 2000 / 2700)
    assert nyc['employment_population_ratio'] == pytest.approx(100 * 2000 / 2700)


def test_unidentified_county_only_counts_toward_state(cps_extract):
    series = aggregate_microdata(filter_microdata(normalize_microdata(cps_extract)))
    counties = series.filter(pl.col('geographic_type').eq('county'))
    assert sorted(counties['geographic_code'].to_list()) == ['06037', '36061']
    assert _row(series, 'state', '06')['respondents'] == 3


def test_region_keys_are_unique(cps_extract):
    series = aggregate_microdata(filter_microdata(normalize_microdata(cps_extract)))
    keys = ['geographic_type', 'geographic_code', 'ref_date']
    assert series.unique(subset=keys).height == series.height


def test_zero_labor_force_gives_null_rate():
    df = pl.DataFrame({
        'YEAR': [2020], 'MONTH': [5], 'STATEFIP': [12], 'COUNTY': [0],
        'AGE': [80], 'SEX': [2], 'RACE': [100], 'EMPSTAT': [36], 'WTFINL': [900.0],
    })
    series = aggregate_microdata(filter_microdata(normalize_microdata(df)))
    florida = _row(series, 'state', '12')
    assert florida['labor_force'] == 0.0
    assert florida['unemployment_rate'] is None
    assert florida['participation_rate'] == 0.0


def test_demographic_filter_restricts_universe(cps_extract):
    df = normalize_microdata(cps_extract)

    assert filter_microdata(df).height == 5
    women = filter_microdata(df, DemographicFilter(sexes=[2]))
    assert women['SEX'].unique().to_list() == [2]
    prime_age = filter_microdata(df, DemographicFilter(min_age=25, max_age=54))
    assert sorted(prime_age['AGE'].to_list()) == [25, 30, 40, 50]


def test_armed_forces_and_unweighted_rows_are_dropped():
    df = normalize_microdata(pl.DataFrame({
        'YEAR': [2020] * 3, 'MONTH': [4] * 3, 'STATEFIP': [6] * 3, 'COUNTY': [0] * 3,
        'AGE': [30] * 3, 'SEX': [1] * 3, 'RACE': [100] * 3,
        'EMPSTAT': [1, 10, 10], 'WTFINL': [100.0, None, 0.0],
    }))
    assert filter_microdata(df).height == 0


def test_labeled_extract_is_decoded():
    labeled = pl.DataFrame({
        'year': [2020, 2020, 2020, 2020],
        'month': ['April', 'April', 'April', 'April'],
        'statefip': [6, 6, 6, 6],
        'county': [6037, 6037, 6037, 6037],
        'age': [30, 31, 70, 25],
        'sex': ['Male', 'Female', 'Female', 'Male'],
        'race': [100, 100, 100, 100],
        'empstat': ['At work', 'Unemployed, experienced worker', 'NILF, retired', 'Armed Forces'],
        'wtfinl': [1.0, 1.0, 1.0, 1.0],
        'serial': [1, 2, 3, 4],
    })
    df = normalize_microdata(labeled)

    assert 'SERIAL' not in df.columns
    assert df['EMPSTAT'].to_list() == [10, 21, 36, 1]
    assert df['SEX'].to_list() == [1, 2, 2, 1]
    assert df['MONTH'].unique().to_list() == [4]
    assert filter_microdata(df).height == 3


def test_labeled_state_names_are_decoded():
    labeled = pl.DataFrame({
        'YEAR': [2020, 2020],
        'MONTH': ['April', 'April'],
        'STATEFIP': ['California', 'New York'],
        'COUNTY': [0, 0],
        'AGE': [30, 40],
        'SEX': ['Male', 'Female'],
        'RACE': [100, 100],
        'EMPSTAT': ['At work', 'Unemployed'],
        'WTFINL': [1.0, 1.0],
    })
    series = aggregate_microdata(filter_microdata(normalize_microdata(labeled)))

    states = series.filter(pl.col('geographic_type').eq('state'))
    assert states['geographic_code'].to_list() == ['06', '36']
    assert _row(series, 'state', '36')['unemployment_rate'] == 100.0


def test_undecodable_codes_warn_and_are_dropped(caplog):
    labeled = pl.DataFrame({
        'YEAR': [2020, 2020],
        'MONTH': ['April', 'April'],
        'STATEFIP': ['California', 'Atlantis'],
        'COUNTY': [0, 0],
        'AGE': [30, 40],
        'SEX': ['Male', 'Female'],
        'RACE': [100, 100],
        'EMPSTAT': ['At work', 'At work'],
        'WTFINL': [1.0, 1.0],
    })
    with caplog.at_level(logging.WARNING):
        df = normalize_microdata(labeled)

    assert any('STATEFIP' in r.getMessage() for r in caplog.records)
    series = aggregate_microdata(filter_microdata(df))
    assert series['geographic_code'].null_count() == 0
    assert _row(series, 'national', '00')['respondents'] == 1


def test_missing_columns_raise_key_error(cps_extract):
    with pytest.raises(KeyError, match='WTFINL'):
        normalize_microdata(cps_extract.drop('WTFINL'))


def test_read_microdata_from_csv(tmp_path, cps_extract):
    path = tmp_path / 'cps.csv'
    cps_extract.write_csv(path)
    df = read_microdata(path)
    assert df.height == cps_extract.height
    assert df['COUNTY'].to_list() == cps_extract['COUNTY'].to_list()
