'''Average OxCGRT US state policy indices by month.

The OxCGRT US file has one row per jurisdiction per day.  Index column
names changed between releases (``StringencyIndex`` became
``StringencyIndex_Average`` once vaccination-status variants were
added), so each index is resolved from a list of candidates.
'''

from __future__ import annotations

from pathlib import Path

import polars as pl

from .. import config

INDEX_CANDIDATES = {
    'stringency_index': [
        'StringencyIndex_Average',
        'StringencyIndex',
        'StringencyIndex_Average_ForDisplay',
        'StringencyIndexForDisplay',
    ],
    'government_response_index': [
        'GovernmentResponseIndex_Average',
        'GovernmentResponseIndex',
        'GovernmentResponseIndex_Average_ForDisplay',
        'GovernmentResponseIndexForDisplay',
    ],
    'containment_health_index': [
        'ContainmentHealthIndex_Average',
        'ContainmentHealthIndex',
        'ContainmentHealthIndex_Average_ForDisplay',
        'ContainmentHealthIndexForDisplay',
    ],
    'economic_support_index': [
        'EconomicSupportIndex',
        'EconomicSupportIndexForDisplay',
    ],
}
INDEX_NAMES = list(INDEX_CANDIDATES)


def resolve_index_columns(columns: list[str]) -> dict[str, str]:
    '''Map each output index name to the first candidate present in *columns*.

    Raises:
        KeyError: If no candidate exists for some index.
    '''
    resolved = {}
    missing = []
    for name, candidates in INDEX_CANDIDATES.items():
        present = [c for c in candidates if c in columns]
        if not present:
            missing.append(name)
            continue
        resolved[name] = present[0]
    if missing:
        raise KeyError(f'Policy file has no column for indices: {missing}')
    return resolved


def normalize_policy(df: pl.DataFrame) -> pl.DataFrame:
    '''Keep US state-total rows and return state_fips, date and the indices.'''
    missing = [c for c in ('CountryCode', 'RegionCode', 'Date') if c not in df.columns]
    if missing:
        raise KeyError(f'Policy file is missing columns: {missing}')
    indices = resolve_index_columns(df.columns)

    filters = [
        pl.col('CountryCode').eq('USA'),
        pl.col('RegionCode').cast(pl.Utf8).str.starts_with('US_'),
    ]
    if 'Jurisdiction' in df.columns:
        filters.append(pl.col('Jurisdiction').eq('STATE_TOTAL'))

    return (
        df.filter(*filters)
        .select(
            state_fips=pl.col('RegionCode')
            .cast(pl.Utf8)
            .str.slice(3)
            .replace_strict(config.ABBREV_TO_FIPS, default=None),
            date=pl.col('Date').cast(pl.Utf8).str.to_date('%Y%m%d'),
            **{
                name: pl.col(column).cast(pl.Float64, strict=False)
                for name, column in indices.items()
            },
        )
        .filter(pl.col('state_fips').is_not_null())
    )


def read_policy(path: Path | str) -> pl.DataFrame:
    '''Read the OxCGRT US CSV (all columns as text) and normalize it.'''
    raw = pl.read_csv(path, infer_schema_length=0)
    return normalize_policy(raw)


def monthly_policy(df: pl.DataFrame) -> pl.DataFrame:
    '''Monthly mean of each index per state, keyed on (state_fips, ref_date).'''
    return (
        df.with_columns(
            ref_date=pl.date(pl.col('date').dt.year(), pl.col('date').dt.month(), config.REF_DAY),
        )
        .group_by('state_fips', 'ref_date')
        .agg([pl.col(name).mean() for name in INDEX_NAMES])
        .sort('state_fips', 'ref_date')
    )


def build_policy_series(path: Path | str | None = None, *, save: bool = True) -> pl.DataFrame:
    '''Read the OxCGRT file and write ``data/policy_series.parquet``.'''
    src = Path(path) if path is not None else config.POLICY_PATH
    series = monthly_policy(read_policy(src))
    print(f'Policy series: {series.height:,} rows')

    if save:
        out_path = config.POLICY_SERIES_PATH
        out_path.parent.mkdir(parents=True, exist_ok=True)
        series.write_parquet(out_path)
        print(f'Wrote {out_path}')

    return series


def main() -> None:
    build_policy_series(save=True)


if __name__ == '__main__':
    main()
