'''Reporting tables and county clustering built on ``features.parquet``.

- :mod:`~covid_unemployment.analysis.report` -- sorted/filtered tables
  (top regions in a month, baseline-to-peak rate changes, zero-rate
  regions) written as CSV.
- :mod:`~covid_unemployment.analysis.clustering` -- per-county economic
  and COVID profiles, standardized and grouped with k-means.
'''

from .clustering import build_clusters, cluster_counties, cluster_summary, county_profiles
from .report import flagged_regions, rate_change, top_regions, write_reports

__all__ = [
    'build_clusters',
    'cluster_counties',
    'cluster_summary',
    'county_profiles',
    'flagged_regions',
    'rate_change',
    'top_regions',
    'write_reports',
]
