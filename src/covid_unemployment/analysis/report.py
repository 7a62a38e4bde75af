'''Sorted and filtered reporting tables from the features dataset.'''

from __future__ import annotations

from datetime import date
from pathlib import Path

import polars as pl

from .. import config
from ..processing import REGION_COLS

LABEL_COLS = ['state_abbrev', 'state_name', 'county_name']


def as_ref_date(value: date | str) -> date:
    '''Return the reference date (the 12th) for a date or a ``YYYY-MM`` string.'''
    if isinstance(value, date):
        return date(value.year, value.month, config.REF_DAY)
    year, month = value.split('-')[:2]
    return date(int(year), int(month), config.REF_DAY)


def _labels(df: pl.DataFrame) -> list[str]:
    return [c for c in LABEL_COLS if c in df.columns]


def top_regions(
    df: pl.DataFrame,
    ref_date: date | str,
    *,
    n: int = 10,
    geographic_type: str = 'county',
    by: str = 'unemployment_rate',
    descending: bool = True,
    exclude_flagged: bool = True,
) -> pl.DataFrame:
    '''The *n* regions of one type ranked by *by* in the month of *ref_date*.

    Regions with a null *by* value are never returned.  Zero-rate flagged
    regions are dropped unless *exclude_flagged* is False.
    '''
    filters = [
        pl.col('geographic_type').eq(geographic_type),
        pl.col('ref_date').eq(as_ref_date(ref_date)),
        pl.col(by).is_not_null(),
    ]
    if exclude_flagged and 'zero_rate_flag' in df.columns:
        filters.append(~pl.col('zero_rate_flag'))

    return (
        df.filter(*filters)
        .sort(by, descending=descending)
        .head(n)
        .select(*REGION_COLS, *_labels(df), 'ref_date', by)
    )


def rate_change(
    df: pl.DataFrame,
    start: date | str,
    end: date | str,
    *,
    geographic_type: str = 'state',
    exclude_flagged: bool = False,
) -> pl.DataFrame:
    '''Unemployment rate at *start* and *end* per region, largest rise first.

    Regions missing either month (or with a null rate in either) are dropped.
    '''
    regions = df.filter(pl.col('geographic_type').eq(geographic_type))
    if exclude_flagged and 'zero_rate_flag' in regions.columns:
        regions = regions.filter(~pl.col('zero_rate_flag'))

    def _rate_at(when: date | str, name: str) -> pl.DataFrame:
        return regions.filter(
            pl.col('ref_date').eq(as_ref_date(when)),
            pl.col('unemployment_rate').is_not_null(),
        ).select(*REGION_COLS, *_labels(regions), pl.col('unemployment_rate').alias(name))

    start_rates = _rate_at(start, 'start_rate')
    end_rates = _rate_at(end, 'end_rate').select(*REGION_COLS, 'end_rate')

    return (
        start_rates.join(end_rates, on=REGION_COLS, how='inner')
        .with_columns(change=pl.col('end_rate') - pl.col('start_rate'))
        .sort('change', *REGION_COLS, descending=[True, False, False])
    )


def flagged_regions(df: pl.DataFrame) -> pl.DataFrame:
    '''One row per zero-rate flagged region, most zero months first.'''
    return (
        df.filter(pl.col('zero_rate_flag'))
        .group_by(REGION_COLS)
        .agg(
            *[pl.col(c).first() for c in _labels(df)],
            zero_rate_months=pl.col('zero_rate_months').first(),
            months=pl.len(),
            mean_respondents=pl.col('respondents').mean(),
        )
        .sort('zero_rate_months', *REGION_COLS, descending=[True, False, False])
    )


def write_reports(
    df: pl.DataFrame,
    out_dir: Path | None = None,
    *,
    baseline: date | str = '2020-02',
    peak: date | str = '2020-04',
    n: int = 25,
) -> list[Path]:
    '''Write the standard report CSVs and return their paths.

    Files: ``top_counties.csv`` (highest county rates at *peak*),
    ``state_rate_change.csv`` and ``county_rate_change.csv`` (baseline to
    peak) and ``zero_rate_regions.csv``.
    '''
    out = out_dir or config.REPORTS_DIR
    out.mkdir(parents=True, exist_ok=True)

    tables = {
        'top_counties.csv': top_regions(df, peak, n=n),
        'state_rate_change.csv': rate_change(df, baseline, peak),
        'county_rate_change.csv': rate_change(
            df, baseline, peak, geographic_type='county', exclude_flagged=True
        ),
        'zero_rate_regions.csv': flagged_regions(df),
    }

    paths = []
    for name, table in tables.items():
        path = out / name
        table.write_csv(path)
        print(f'Wrote {path} ({table.height} rows)')
        paths.append(path)
    return paths


def main() -> None:
    write_reports(pl.read_parquet(config.FEATURES_PATH))


if __name__ == '__main__':
    main()
