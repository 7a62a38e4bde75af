'''Join the monthly series and derive per-region time features.

Steps:

1. Left-join COVID rows onto the unemployment series by region-month and
   policy indices by state-month (county rows use their state's policy).
2. Add lagged, differenced and rolling unemployment rates.  Lags are
   joined on calendar offsets rather than row shifts, so a county with a
   missing survey month does not pick up the wrong neighbour.
3. Flag regions that report a zero unemployment rate while having a
   labor force, which in CPS county cells means a thin sample rather
   than full employment.
4. Write ``data/features.parquet``.
'''

from __future__ import annotations

import logging

import polars as pl

from .. import config
from ..reference import read_fips_lookup
from . import KEY_COLS, REGION_COLS
from .covid import COVID_COLUMNS
from .policy import INDEX_NAMES

log = logging.getLogger(__name__)

COVID_VALUES = COVID_COLUMNS[len(KEY_COLS):]


def _fill_pre_pandemic(df: pl.DataFrame) -> pl.DataFrame:
    '''Zero COVID counts for months before a region's first reported month.'''
    first = (
        pl.col('ref_date')
        .filter(pl.col('new_cases').is_not_null())
        .min()
        .over(REGION_COLS)
    )
    df = df.with_columns(first_covid_month=first)
    before = pl.col('ref_date') < pl.col('first_covid_month')
    return df.with_columns(
        [
            pl.when(pl.col(c).is_null() & before).then(0.0).otherwise(pl.col(c)).alias(c)
            for c in COVID_VALUES
        ]
    ).drop('first_covid_month')


def merge_sources(
    unemployment: pl.DataFrame,
    covid: pl.DataFrame,
    policy: pl.DataFrame,
    fips_lookup: pl.DataFrame | None = None,
) -> pl.DataFrame:
    '''Join COVID, policy and (optionally) names onto the unemployment series.

    Args:
        unemployment: Output of :func:`~.microdata.aggregate_microdata`.
        covid: Output of :func:`~.covid.covid_series`.
        policy: Output of :func:`~.policy.monthly_policy`.
        fips_lookup: Optional FIPS lookup adding state and county names.

    Returns:
        The unemployment series with COVID columns, policy indices,
        ``state_fips`` and ``state_abbrev`` (plus names when a lookup is given).
        Row count equals that of *unemployment*.
    '''
    merged = (
        unemployment.join(covid.select(COVID_COLUMNS), on=KEY_COLS, how='left')
        .with_columns(
            state_fips=pl.when(pl.col('geographic_type').eq('national'))
            .then(pl.lit(None, pl.Utf8))
            .otherwise(pl.col('geographic_code').str.slice(0, 2)),
        )
        .with_columns(
            state_abbrev=pl.col('state_fips').replace_strict(config.FIPS_TO_ABBREV, default=None),
        )
        .join(
            policy.select('state_fips', 'ref_date', *INDEX_NAMES),
            on=['state_fips', 'ref_date'],
            how='left',
        )
    )

    if fips_lookup is not None:
        states = fips_lookup.select('state_fips', 'state_name').unique(subset='state_fips')
        counties = fips_lookup.select(
            geographic_type=pl.lit('county'),
            geographic_code=pl.col('county_fips'),
            county_name=pl.col('county_name'),
        )
        merged = merged.join(states, on='state_fips', how='left').join(
            counties, on=REGION_COLS, how='left'
        )

    assert merged.height == unemployment.height
    return _fill_pre_pandemic(merged).sort(*KEY_COLS)


def add_time_features(
    df: pl.DataFrame,
    *,
    lags: tuple[int, ...] = config.RATE_LAGS,
    window: int = config.RATE_WINDOW_MONTHS,
) -> pl.DataFrame:
    '''Add lagged, differenced and rolling unemployment rates per region.

    Adds ``unemployment_rate_lag{n}`` for every lag (1 and 12 are always
    included), ``unemployment_rate_diff`` (month over month),
    ``unemployment_rate_yoy`` (year over year),
    ``unemployment_rate_{window}m`` (trailing mean over *window* months)
    and ``new_cases_per_100k`` when COVID columns are present.
    '''
    if window < 1:
        raise ValueError(f'window must be at least 1 month, got {window}')

    kept = set(lags) | {1, 12}
    helpers = set(range(1, window)) - kept

    out = df.sort(*KEY_COLS)
    for n in sorted(kept | helpers):
        name = f'unemployment_rate_lag{n}'
        lagged = df.select(
            *REGION_COLS,
            ref_date=pl.col('ref_date').dt.offset_by(f'{n}mo'),
            **{name: pl.col('unemployment_rate')},
        )
        out = out.join(lagged, on=KEY_COLS, how='left')

    rate = pl.col('unemployment_rate')
    trailing = [rate, *[pl.col(f'unemployment_rate_lag{n}') for n in range(1, window)]]
    out = out.with_columns(
        unemployment_rate_diff=rate - pl.col('unemployment_rate_lag1'),
        unemployment_rate_yoy=rate - pl.col('unemployment_rate_lag12'),
        **{f'unemployment_rate_{window}m': pl.mean_horizontal(trailing)},
    ).drop([f'unemployment_rate_lag{n}' for n in helpers])

    if 'new_cases' in out.columns:
        out = out.with_columns(
            new_cases_per_100k=pl.when(pl.col('population') > 0)
            .then(pl.col('new_cases') / pl.col('population') * 1e5)
            .otherwise(None),
        )
    return out.sort(*KEY_COLS)


def flag_zero_rate_groups(df: pl.DataFrame) -> pl.DataFrame:
    '''Count zero-rate months per region and flag regions with any.

    A month counts when the region has a positive labor force and an
    unemployment rate of exactly zero.
    '''
    zero = (pl.col('labor_force') > 0) & (pl.col('unemployment_rate') == 0)
    out = df.with_columns(
        zero_rate_months=zero.fill_null(False).cast(pl.Int64).sum().over(REGION_COLS),
    ).with_columns(
        zero_rate_flag=pl.col('zero_rate_months') > 0,
    )

    flagged = (
        out.filter(pl.col('zero_rate_flag'))
        .select(*REGION_COLS, 'zero_rate_months')
        .unique()
        .sort(*REGION_COLS)
    )
    if flagged.height:
        log.warning('%d regions report a zero unemployment rate', flagged.height)
        for row in flagged.iter_rows(named=True):
            log.debug(
                'Zero-rate %s %s (%d months)',
                row['geographic_type'], row['geographic_code'], row['zero_rate_months'],
            )
    return out


def build_features(*, save: bool = True) -> pl.DataFrame:
    '''Merge the saved series, add features and flags, write ``features.parquet``.

    Parameters
    ----------
    save : bool
        If True (default), write the result to ``data/features.parquet``.

    Returns
    -------
    pl.DataFrame
        One row per region-month of the unemployment series.
    '''
    unemployment = pl.read_parquet(config.UNEMPLOYMENT_SERIES_PATH)
    covid = pl.read_parquet(config.COVID_SERIES_PATH)
    policy = pl.read_parquet(config.POLICY_SERIES_PATH)
    lookup = read_fips_lookup()
    if lookup is None:
        log.warning('FIPS lookup not found; region names will be missing')

    features = flag_zero_rate_groups(
        add_time_features(merge_sources(unemployment, covid, policy, lookup))
    )
    print(f'Features: {features.height:,} rows, {features.width} columns')

    if save:
        out_path = config.FEATURES_PATH
        out_path.parent.mkdir(parents=True, exist_ok=True)
        features.write_parquet(out_path)
        print(f'Wrote {out_path}')

    return features


def main() -> None:
    build_features(save=True)


if __name__ == '__main__':
    main()
