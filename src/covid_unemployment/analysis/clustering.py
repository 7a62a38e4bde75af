'''Cluster counties by their labor-market and COVID experience.

Each unflagged county is summarized by its pre-pandemic unemployment
rate, its pandemic peak, the rise between them, cumulative cases and
deaths per 100k and the mean stringency of its state's policy.  The
profiles are standardized and grouped with k-means; cluster labels are
renumbered so that cluster 0 has the smallest mean rate rise.
'''

from __future__ import annotations

import logging
from datetime import date

import numpy as np
import polars as pl
from sklearn.cluster import KMeans
from sklearn.metrics import silhouette_score
from sklearn.preprocessing import StandardScaler

from .. import config
from ..processing import REGION_COLS
from .report import LABEL_COLS, as_ref_date

log = logging.getLogger(__name__)

CLUSTER_FEATURES = [
    'baseline_rate',
    'peak_rate',
    'rate_change',
    'cases_per_100k',
    'deaths_per_100k',
    'mean_stringency',
]


def _reported_sum(name: str, period: pl.Expr) -> pl.Expr:
    '''Sum of *name* over *period*, null when no value was reported.'''
    values = pl.col(name).filter(period)
    return pl.when(values.count() > 0).then(values.sum()).otherwise(None)


def county_profiles(
    features: pl.DataFrame,
    *,
    baseline_end: date | str = '2020-02',
    exclude_flagged: bool = True,
) -> pl.DataFrame:
    '''One row per county with the :data:`CLUSTER_FEATURES` columns.

    Months up to and including *baseline_end* form the baseline; later
    months form the pandemic period.  Counties with any null feature are
    dropped with a warning.
    '''
    counties = features.filter(pl.col('geographic_type').eq('county'))
    if exclude_flagged and 'zero_rate_flag' in counties.columns:
        counties = counties.filter(~pl.col('zero_rate_flag'))

    cut = as_ref_date(baseline_end)
    before = pl.col('ref_date') <= cut
    after = pl.col('ref_date') > cut
    rate = pl.col('unemployment_rate')

    profiles = (
        counties.group_by(REGION_COLS)
        .agg(
            *[pl.col(c).first() for c in LABEL_COLS if c in counties.columns],
            baseline_rate=rate.filter(before).mean(),
            peak_rate=rate.filter(after).max(),
            total_new_cases=_reported_sum('new_cases', after),
            total_new_deaths=_reported_sum('new_deaths', after),
            mean_population=pl.col('population').mean(),
            mean_stringency=pl.col('stringency_index').filter(after).mean(),
        )
        .with_columns(
            rate_change=pl.col('peak_rate') - pl.col('baseline_rate'),
            cases_per_100k=pl.when(pl.col('mean_population') > 0)
            .then(pl.col('total_new_cases') / pl.col('mean_population') * 1e5)
            .otherwise(None),
            deaths_per_100k=pl.when(pl.col('mean_population') > 0)
            .then(pl.col('total_new_deaths') / pl.col('mean_population') * 1e5)
            .otherwise(None),
        )
        .sort(*REGION_COLS)
    )

    complete = profiles.drop_nulls(subset=CLUSTER_FEATURES)
    dropped = profiles.height - complete.height
    if dropped:
        log.warning('Dropping %d counties with incomplete cluster features', dropped)
    return complete


def _scaled_matrix(profiles: pl.DataFrame, features: list[str]) -> np.ndarray:
    if profiles.select(features).null_count().sum_horizontal().item():
        raise ValueError('Cluster features contain nulls; build profiles with county_profiles')
    return StandardScaler().fit_transform(profiles.select(features).to_numpy())


def cluster_counties(
    profiles: pl.DataFrame,
    *,
    n_clusters: int = config.N_CLUSTERS,
    random_state: int = config.RANDOM_STATE,
    features: list[str] = CLUSTER_FEATURES,
) -> pl.DataFrame:
    '''Standardize *features* and assign each county a k-means cluster.

    Args:
        profiles: Output of :func:`county_profiles`.
        n_clusters: Number of clusters (k).
        random_state: Seed passed to :class:`~sklearn.cluster.KMeans`.
        features: Columns used as the feature matrix.

    Returns:
        *profiles* with an Int32 ``cluster`` column.

    Raises:
        ValueError: If *n_clusters* is below 1 or exceeds the number of
            counties, or if the features contain nulls.
    '''
    if n_clusters < 1 or n_clusters > profiles.height:
        raise ValueError(
            f'n_clusters must be between 1 and {profiles.height}, got {n_clusters}'
        )

    X = _scaled_matrix(profiles, features)
    km = KMeans(n_clusters=n_clusters, n_init=10, random_state=random_state)
    labels = km.fit_predict(X)

    if 'rate_change' in features:
        order = np.argsort(km.cluster_centers_[:, features.index('rate_change')])
        remap = np.empty_like(order)
        remap[order] = np.arange(len(order))
        labels = remap[labels]

    return profiles.with_columns(cluster=pl.Series('cluster', labels, dtype=pl.Int32))


def cluster_summary(
    clustered: pl.DataFrame,
    features: list[str] = CLUSTER_FEATURES,
) -> pl.DataFrame:
    '''Mean of each feature and the county count per cluster.'''
    return (
        clustered.group_by('cluster')
        .agg(*[pl.col(f).mean() for f in features], counties=pl.len())
        .sort('cluster')
    )


def score_cluster_counts(
    profiles: pl.DataFrame,
    k_values: range = range(2, 10),
    *,
    random_state: int = config.RANDOM_STATE,
    features: list[str] = CLUSTER_FEATURES,
) -> pl.DataFrame:
    '''Inertia and silhouette score for each k, for choosing the cluster count.'''
    X = _scaled_matrix(profiles, features)
    rows = []
    for k in k_values:
        if k < 2 or k >= profiles.height:
            continue
        km = KMeans(n_clusters=k, n_init=10, random_state=random_state)
        labels = km.fit_predict(X)
        rows.append((k, float(km.inertia_), float(silhouette_score(X, labels))))
    return pl.DataFrame(
        rows,
        schema={'k': pl.Int64, 'inertia': pl.Float64, 'silhouette': pl.Float64},
        orient='row',
    )


def build_clusters(*, n_clusters: int | None = None, save: bool = True) -> pl.DataFrame:
    '''Profile and cluster counties from ``features.parquet``.

    Parameters
    ----------
    n_clusters : int | None
        k for k-means; defaults to :data:`config.N_CLUSTERS`.
    save : bool
        If True (default), write ``data/county_clusters.parquet`` and
        ``data/reports/cluster_summary.csv``.

    Returns
    -------
    pl.DataFrame
        County profiles with their cluster.
    '''
    k = n_clusters if n_clusters is not None else config.N_CLUSTERS
    profiles = county_profiles(pl.read_parquet(config.FEATURES_PATH))
    clustered = cluster_counties(profiles, n_clusters=k)
    summary = cluster_summary(clustered)
    print(f'Clustered {clustered.height:,} counties into {k} groups')
    print(summary)

    if save:
        config.CLUSTERS_PATH.parent.mkdir(parents=True, exist_ok=True)
        clustered.write_parquet(config.CLUSTERS_PATH)
        print(f'Wrote {config.CLUSTERS_PATH}')
        config.REPORTS_DIR.mkdir(parents=True, exist_ok=True)
        summary_path = config.REPORTS_DIR / 'cluster_summary.csv'
        summary.write_csv(summary_path)
        print(f'Wrote {summary_path}')

    return clustered


def main() -> None:
    build_clusters(save=True)


if __name__ == '__main__':
    main()
