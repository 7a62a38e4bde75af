'''County FIPS lookup scraped from a public HTML code table.

The page is fetched by :func:`covid_unemployment.download.download_fips_table`;
this subpackage parses it into ``fips_codes.parquet``, the small lookup
that attaches county and state names and USPS abbreviations to the
numeric codes used by the CPS extract and the NYT COVID file.
'''

from .parser import parse_fips_table
from .read import build_fips_lookup, read_fips_lookup

__all__ = [
    'build_fips_lookup',
    'parse_fips_table',
    'read_fips_lookup',
]
