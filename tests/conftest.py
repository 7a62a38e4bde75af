import polars as pl
import pytest


@pytest.fixture
def cps_extract() -> pl.DataFrame:
    '''Six person-months in April 2020: LA county, an unidentified CA county, NYC.'''
    return pl.DataFrame({
        'YEAR': [2020] * 6,
        'MONTH': [4] * 6,
        'STATEFIP': [6, 6, 6, 36, 36, 36],
        'COUNTY': [6037, 6037, 0, 36061, 36061, 36061],
        'AGE': [30, 40, 50, 25, 15, 70],
        'SEX': [1, 2, 1, 2, 1, 2],
        'RACE': [100] * 6,
        'EMPSTAT': [10, 21, 12, 10, 10, 36],
        'WTFINL': [1000.0, 500.0, 1500.0, 2000.0, 800.0, 700.0],
    })


@pytest.fixture
def nyt_counties() -> pl.DataFrame:
    return pl.DataFrame({
        'date': [
            '2020-03-30', '2020-03-31', '2020-04-01', '2020-04-02',
            '2020-03-31', '2020-04-01',
            '2020-04-01',
        ],
        'county': ['Los Angeles'] * 4 + ['New York City'] * 2 + ['Unknown'],
        'state': ['California'] * 4 + ['New York'] * 2 + ['Texas'],
        'fips': ['06037'] * 4 + [None, None, None],
        'cases': [10, 15, 14, 20, 100, 150, 5],
        'deaths': [0, 1, 1, 2, 5, 8, 0],
    })


@pytest.fixture
def oxcgrt() -> pl.DataFrame:
    '''OxCGRT rows as read with every column as text.'''
    return pl.DataFrame({
        'CountryCode': ['USA', 'USA', 'USA', 'USA', 'GBR'],
        'RegionCode': ['US_CA', 'US_CA', 'US_NY', None, 'UK_ENG'],
        'Jurisdiction': ['STATE_TOTAL', 'STATE_TOTAL', 'STATE_TOTAL', 'NAT_TOTAL', 'STATE_TOTAL'],
        'Date': ['20200401', '20200402', '20200401', '20200401', '20200401'],
        'StringencyIndex': ['60', '80', '70', '50', '40'],
        'GovernmentResponseIndex': ['55', '65', '60', '45', '35'],
        'ContainmentHealthIndex': ['50', '70', '65', '40', '30'],
        'EconomicSupportIndex': ['25', '25', '50', '', '75'],
    })