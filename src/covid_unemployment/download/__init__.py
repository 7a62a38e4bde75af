'''Downloaders for the public inputs of the pipeline.

This subpackage fetches raw files into ``data/``:

- :func:`download_covid` saves the NYT county cases/deaths CSV.
- :func:`download_policy` saves the OxCGRT US subnational policy CSV.
- :func:`download_fips_table` saves the HTML page holding the county
  FIPS code table, parsed later by :mod:`covid_unemployment.reference`.

The CPS microdata extract is requested through the IPUMS web interface
and is not downloaded here; point ``CPS_EXTRACT_PATH`` at it instead.

All functions accept an optional ``data_dir`` and/or ``client`` so
they can be called from the CLI or from user code.
'''

from .sources import download_covid, download_fips_table, download_policy

__all__ = [
    'download_covid',
    'download_fips_table',
    'download_policy',
]
