'''Turn the NYT cumulative county file into monthly COVID case features.

The NYT file has one row per county per day with *cumulative* cases and
deaths.  This module:

1. Assigns New York City (published without a FIPS code) to New York
   County and drops the other unplaced rows ("Unknown", Kansas City,
   Joplin).
2. Differences the cumulative counts into daily new cases/deaths,
   clipping negative data corrections to zero, and adds 7-day averages.
3. Rolls the daily rows up to months for counties and states.
4. Writes ``data/covid_series.parquet``.
'''

from __future__ import annotations

import logging
from pathlib import Path

import polars as pl

from .. import config
from . import KEY_COLS

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['date', 'county', 'state', 'fips', 'cases', 'deaths']
NYC_FIPS = '36061'

COVID_COLUMNS = [
    *KEY_COLS,
    'new_cases',
    'new_deaths',
    'cumulative_cases',
    'cumulative_deaths',
    'max_new_cases_7d',
]


def normalize_covid(df: pl.DataFrame) -> pl.DataFrame:
    '''Parse dates, place New York City, zero-pad FIPS and drop unplaced rows.

    Raises:
        KeyError: If any of :data:`REQUIRED_COLUMNS` is absent.
    '''
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f'COVID file is missing columns: {missing}')

    fips = pl.col('fips').cast(pl.Utf8).str.replace(r'\.0$', '')
    out = df.select(
        date=pl.col('date').cast(pl.Utf8).str.to_date('%Y-%m-%d'),
        county_name=pl.col('county'),
        state_name=pl.col('state'),
        county_fips=pl.when(fips.is_null() & pl.col('county').eq('New York City'))
        .then(pl.lit(NYC_FIPS))
        .otherwise(fips.str.zfill(5)),
        cases=pl.col('cases').cast(pl.Float64),
        deaths=pl.col('deaths').cast(pl.Float64, strict=False),
    )

    unplaced = out.filter(pl.col('county_fips').is_null())
    if unplaced.height:
        names = sorted(unplaced['county_name'].drop_nulls().unique().to_list())
        log.warning('Dropping %d COVID rows without a FIPS code: %s', unplaced.height, names)
    return out.filter(pl.col('county_fips').is_not_null())


def read_covid(path: Path | str) -> pl.DataFrame:
    '''Read the NYT ``us-counties.csv`` file and normalize it.'''
    raw = pl.read_csv(path, schema_overrides={'fips': pl.Utf8, 'date': pl.Utf8})
    return normalize_covid(raw)


def daily_covid_features(
    df: pl.DataFrame,
    *,
    key: str = 'county_fips',
    window: int = config.COVID_WINDOW_DAYS,
) -> pl.DataFrame:
    '''Daily new cases/deaths and their rolling means per region.

    Args:
        df: Rows with *key*, ``date``, cumulative ``cases`` and ``deaths``.
        key: Region column to difference within.
        window: Rolling window in days.

    Returns:
        *df* sorted by (key, date) with new_cases, new_deaths,
        new_cases_7d and new_deaths_7d added.
    '''
    daily = (
        df.sort(key, 'date')
        .with_columns(
            pl.col('deaths').fill_null(strategy='forward').over(key).fill_null(0.0),
        )
        .with_columns(
            new_cases=pl.col('cases').diff().over(key).fill_null(pl.col('cases')),
            new_deaths=pl.col('deaths').diff().over(key).fill_null(pl.col('deaths')),
        )
    )

    corrections = daily.filter((pl.col('new_cases') < 0) | (pl.col('new_deaths') < 0)).height
    if corrections:
        log.warning('Clipping %d negative daily COVID corrections to zero', corrections)

    return daily.with_columns(
        pl.col('new_cases').clip(lower_bound=0),
        pl.col('new_deaths').clip(lower_bound=0),
    ).with_columns(
        new_cases_7d=pl.col('new_cases').rolling_mean(window_size=window).over(key),
        new_deaths_7d=pl.col('new_deaths').rolling_mean(window_size=window).over(key),
    )


def monthly_covid(daily: pl.DataFrame, *, key: str = 'county_fips') -> pl.DataFrame:
    '''Roll daily features up to one row per (key, ref_date).'''
    return (
        daily.with_columns(
            ref_date=pl.date(pl.col('date').dt.year(), pl.col('date').dt.month(), config.REF_DAY),
        )
        .group_by(key, 'ref_date')
        .agg(
            new_cases=pl.col('new_cases').sum(),
            new_deaths=pl.col('new_deaths').sum(),
            cumulative_cases=pl.col('cases').sort_by('date').last(),
            cumulative_deaths=pl.col('deaths').sort_by('date').last(),
            max_new_cases_7d=pl.col('new_cases_7d').max(),
        )
        .sort(key, 'ref_date')
    )


def state_totals(df: pl.DataFrame) -> pl.DataFrame:
    '''Sum county cumulative counts to states by day.'''
    return (
        df.with_columns(state_fips=pl.col('county_fips').str.slice(0, 2))
        .group_by('state_fips', 'date')
        .agg(pl.col('cases').sum(), pl.col('deaths').sum())
    )


def covid_series(df: pl.DataFrame) -> pl.DataFrame:
    '''Monthly county and state COVID rows keyed like the unemployment series.'''
    county = monthly_covid(daily_covid_features(df)).with_columns(
        geographic_type=pl.lit('county'),
        geographic_code=pl.col('county_fips'),
    ).select(COVID_COLUMNS)
    state = monthly_covid(
        daily_covid_features(state_totals(df), key='state_fips'),
        key='state_fips',
    ).with_columns(
        geographic_type=pl.lit('state'),
        geographic_code=pl.col('state_fips'),
    ).select(COVID_COLUMNS)
    nation = (
        state_totals(df)
        .group_by('date')
        .agg(pl.col('cases').sum(), pl.col('deaths').sum())
        .with_columns(geographic_code=pl.lit(config.NATIONAL_CODE))
    )
    national = monthly_covid(
        daily_covid_features(nation, key='geographic_code'),
        key='geographic_code',
    ).with_columns(
        geographic_type=pl.lit('national'),
    ).select(COVID_COLUMNS)
    return pl.concat([county, state, national]).sort(*KEY_COLS)


def build_covid_series(path: Path | str | None = None, *, save: bool = True) -> pl.DataFrame:
    '''Read the NYT file and write ``data/covid_series.parquet``.'''
    src = Path(path) if path is not None else config.COVID_PATH
    series = covid_series(read_covid(src))
    print(f'COVID series: {series.height:,} rows')

    if save:
        out_path = config.COVID_SERIES_PATH
        out_path.parent.mkdir(parents=True, exist_ok=True)
        series.write_parquet(out_path)
        print(f'Wrote {out_path}')

    return series


def main() -> None:
    build_covid_series(save=True)


if __name__ == '__main__':
    main()
