'''Aggregate a labeled IPUMS CPS extract into a monthly unemployment series.

The extract has one row per person-month.  This module:

1. Normalizes column names and maps value labels (``"At work"``,
   ``"Female"``, ``"April"``) back to IPUMS codes.
2. Keeps the civilian population matching a :class:`DemographicFilter`.
3. Sums ``WTFINL`` weights into population, employed and unemployed
   counts for the nation, each state and each identified county.
4. Writes ``data/unemployment_series.parquet``.
'''

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from .. import config
from . import KEY_COLS

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    'YEAR', 'MONTH', 'STATEFIP', 'COUNTY', 'AGE', 'SEX', 'RACE', 'EMPSTAT', 'WTFINL',
]

# IPUMS CPS EMPSTAT: 10,12 employed; 20-22 unemployed; 30-36 NILF;
# 1 armed forces and 0 NIU fall outside the civilian universe
EMPLOYED_CODES = [10, 12]
UNEMPLOYED_CODES = [20, 21, 22]
NILF_CODES = [30, 31, 32, 33, 34, 35, 36]
CIVILIAN_CODES = EMPLOYED_CODES + UNEMPLOYED_CODES + NILF_CODES

EMPSTAT_LABELS = {
    'NIU': 0,
    'Armed Forces': 1,
    'At work': 10,
    'Has job, not at work last week': 12,
    'Unemployed': 20,
    'Unemployed, experienced worker': 21,
    'Unemployed, new worker': 22,
    'Not in labor force': 30,
    'NILF, housework': 31,
    'NILF, unable to work': 32,
    'NILF, school': 33,
    'NILF, other': 34,
    'NILF, unpaid, lt 15 hours': 35,
    'NILF, retired': 36,
}
SEX_LABELS = {'Male': 1, 'Female': 2, 'NIU': 9}
MONTH_LABELS = {
    name: i
    for i, name in enumerate(
        ['January', 'February', 'March', 'April', 'May', 'June', 'July',
         'August', 'September', 'October', 'November', 'December'],
        1,
    )
}
STATEFIP_LABELS = {name: int(fips) for fips, name in config.FIPS_TO_NAME.items()}
VALUE_LABELS = {
    'STATEFIP': STATEFIP_LABELS,
    'EMPSTAT': EMPSTAT_LABELS,
    'SEX': SEX_LABELS,
    'MONTH': MONTH_LABELS,
}

SERIES_COLUMNS = [
    *KEY_COLS,
    'population',
    'employed',
    'unemployed',
    'labor_force',
    'unemployment_rate',
    'participation_rate',
    'employment_population_ratio',
    'respondents',
]


@dataclass(frozen=True)
class DemographicFilter:
    '''Which persons enter the labor-force universe.

    Attributes:
        min_age: Youngest age kept (16 matches the official universe).
        max_age: Oldest age kept, or None for no upper bound.
        sexes: IPUMS SEX codes to keep, or None for all.
        races: IPUMS RACE codes to keep, or None for all.
    '''

    min_age: int = 16
    max_age: int | None = None
    sexes: Sequence[int] | None = None
    races: Sequence[int] | None = None

    def expressions(self) -> list[pl.Expr]:
        exprs = [pl.col('AGE') >= self.min_age]
        if self.max_age is not None:
            exprs.append(pl.col('AGE') <= self.max_age)
        if self.sexes is not None:
            exprs.append(pl.col('SEX').is_in(list(self.sexes)))
        if self.races is not None:
            exprs.append(pl.col('RACE').is_in(list(self.races)))
        return exprs


def _decode(name: str, labels: dict[str, int]) -> pl.Expr:
    '''Map a label column back to integer codes; numeric strings pass through.'''
    text = pl.col(name).cast(pl.Utf8).str.strip_chars()
    if not labels:
        return text.cast(pl.Int64, strict=False).alias(name)
    return pl.coalesce(
        text.replace_strict(labels, default=None, return_dtype=pl.Int64),
        text.cast(pl.Int64, strict=False),
    ).alias(name)


def normalize_microdata(df: pl.DataFrame) -> pl.DataFrame:
    '''Upper-case column names, decode value labels and cast codes to integers.

    Values that are neither a known label nor a number become null and are
    reported with a warning; :func:`filter_microdata` drops such rows.

    Raises:
        KeyError: If any of :data:`REQUIRED_COLUMNS` is absent.
    '''
    df = df.rename({c: c.strip().upper() for c in df.columns})
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f'CPS extract is missing columns: {missing}')

    decoded = []
    for name in REQUIRED_COLUMNS:
        if name == 'WTFINL':
            decoded.append(pl.col(name).cast(pl.Float64, strict=False))
        elif df.schema[name] == pl.Utf8:
            decoded.append(_decode(name, VALUE_LABELS.get(name, {})))
        else:
            decoded.append(pl.col(name).cast(pl.Int64))
    out = df.select(decoded)

    for name in REQUIRED_COLUMNS:
        lost = df.get_column(name).is_not_null() & out.get_column(name).is_null()
        if lost.any():
            examples = df.get_column(name).filter(lost).unique().sort().head(3).to_list()
            log.warning(
                'Could not decode %d %s values, e.g. %s', lost.sum(), name, examples
            )
    return out


def read_microdata(path: Path | str) -> pl.DataFrame:
    '''Read a CPS extract (CSV, optionally gzipped) and normalize it.'''
    raw = pl.read_csv(path, infer_schema_length=10000)
    return normalize_microdata(raw)


def filter_microdata(
    df: pl.DataFrame,
    demographic: DemographicFilter | None = None,
) -> pl.DataFrame:
    '''Keep weighted civilian persons matching *demographic*.'''
    demographic = demographic or DemographicFilter()
    return df.filter(
        pl.col('YEAR').is_not_null(),
        pl.col('MONTH').is_not_null(),
        pl.col('STATEFIP').is_not_null(),
        pl.col('EMPSTAT').is_in(CIVILIAN_CODES),
        pl.col('WTFINL').is_not_null(),
        pl.col('WTFINL') > 0,
        *demographic.expressions(),
    )


def _add_rates(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        labor_force=pl.col('employed') + pl.col('unemployed'),
    ).with_columns(
        unemployment_rate=pl.when(pl.col('labor_force') > 0)
        .then(pl.col('unemployed') / pl.col('labor_force') * 100)
        .otherwise(None),
        participation_rate=pl.when(pl.col('population') > 0)
        .then(pl.col('labor_force') / pl.col('population') * 100)
        .otherwise(None),
        employment_population_ratio=pl.when(pl.col('population') > 0)
        .then(pl.col('employed') / pl.col('population') * 100)
        .otherwise(None),
    )


def aggregate_microdata(df: pl.DataFrame) -> pl.DataFrame:
    '''Weighted labor-force totals and rates for nation, states and counties.

    Args:
        df: Filtered, normalized person-month microdata.

    Returns:
        One row per (geographic_type, geographic_code, ref_date) with the
        columns listed in :data:`SERIES_COLUMNS`.
    '''
    persons = df.with_columns(
        ref_date=pl.date(pl.col('YEAR'), pl.col('MONTH'), config.REF_DAY),
        state_fips=pl.col('STATEFIP').cast(pl.Utf8).str.zfill(2),
        county_fips=pl.when(pl.col('COUNTY') > 0)
        .then(pl.col('COUNTY').cast(pl.Utf8).str.zfill(5))
        .otherwise(None),
        employed_wt=pl.when(pl.col('EMPSTAT').is_in(EMPLOYED_CODES))
        .then(pl.col('WTFINL'))
        .otherwise(0.0),
        unemployed_wt=pl.when(pl.col('EMPSTAT').is_in(UNEMPLOYED_CODES))
        .then(pl.col('WTFINL'))
        .otherwise(0.0),
    )

    totals = [
        pl.col('WTFINL').sum().alias('population'),
        pl.col('employed_wt').sum().alias('employed'),
        pl.col('unemployed_wt').sum().alias('unemployed'),
        pl.len().cast(pl.Int64).alias('respondents'),
    ]

    national = persons.group_by('ref_date').agg(totals).with_columns(
        geographic_type=pl.lit('national'),
        geographic_code=pl.lit(config.NATIONAL_CODE),
    )
    state = (
        persons.group_by('state_fips', 'ref_date')
        .agg(totals)
        .rename({'state_fips': 'geographic_code'})
        .with_columns(geographic_type=pl.lit('state'))
    )
    county = (
        persons.filter(pl.col('county_fips').is_not_null())
        .group_by('county_fips', 'ref_date')
        .agg(totals)
        .rename({'county_fips': 'geographic_code'})
        .with_columns(geographic_type=pl.lit('county'))
    )

    series = (
        pl.concat([
            _add_rates(part).select(SERIES_COLUMNS)
            for part in (national, state, county)
        ])
        .sort(*KEY_COLS)
    )
    assert series.height == series.unique(subset=KEY_COLS).height
    return series


def build_unemployment_series(
    path: Path | str | None = None,
    *,
    demographic: DemographicFilter | None = None,
    save: bool = True,
) -> pl.DataFrame:
    '''Read, filter and aggregate the CPS extract.

    Parameters
    ----------
    path : Path | str | None
        CPS extract. Defaults to :data:`config.CPS_EXTRACT_PATH`.
    demographic : DemographicFilter | None
        Universe restriction; the default keeps civilians aged 16+.
    save : bool
        If True (default), write ``data/unemployment_series.parquet``.

    Returns
    -------
    pl.DataFrame
        The regional unemployment series.
    '''
    src = Path(path) if path is not None else config.CPS_EXTRACT_PATH
    persons = filter_microdata(read_microdata(src), demographic)
    print(f'CPS: {persons.height:,} person-months in universe')

    series = aggregate_microdata(persons)
    print(f'Unemployment series: {series.height:,} rows')

    if save:
        out_path = config.UNEMPLOYMENT_SERIES_PATH
        out_path.parent.mkdir(parents=True, exist_ok=True)
        series.write_parquet(out_path)
        print(f'Wrote {out_path}')

    return series


def main() -> None:
    build_unemployment_series(save=True)


if __name__ == '__main__':
    main()
