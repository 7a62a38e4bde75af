'''COVID-era regional unemployment: CPS aggregation, COVID/policy merge, clustering.

This package builds a monthly unemployment series for the nation, states
and counties from an IPUMS CPS microdata extract and sets it beside the
pandemic:

- **CPS** (Current Population Survey) -- weighted labor-force counts and
  rates by region and month
- **NYT COVID-19** -- county cumulative cases and deaths
- **OxCGRT** -- state government-response and stringency indices

The pipeline has four stages, each runnable independently:

1. **Reference scraping** -- download an HTML county FIPS code table and
   turn it into a small lookup of county/state names and abbreviations.
2. **Data downloading** -- fetch the NYT and OxCGRT CSVs.
3. **Processing** -- aggregate the microdata, roll COVID and policy data
   up to months, join everything and derive lag/rolling/difference
   features and zero-rate flags.
4. **Analysis** -- reporting tables and k-means clusters of counties.

Typical usage::

    from covid_unemployment import (
        DemographicFilter,
        build_unemployment_series,
        build_features,
        build_clusters,
    )
'''

from covid_unemployment.analysis import build_clusters, write_reports
from covid_unemployment.download import download_covid, download_fips_table, download_policy
from covid_unemployment.processing.features import build_features
from covid_unemployment.processing.microdata import DemographicFilter, build_unemployment_series
from covid_unemployment.reference import build_fips_lookup, read_fips_lookup

__all__ = [
    'DemographicFilter',
    'build_clusters',
    'build_features',
    'build_fips_lookup',
    'build_unemployment_series',
    'download_covid',
    'download_fips_table',
    'download_policy',
    'read_fips_lookup',
    'write_reports',
]
