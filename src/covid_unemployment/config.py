'''Source URLs, file locations, and pipeline defaults.

All paths are relative to the current working directory (the repository
root at runtime) unless ``COVID_UNEMPLOYMENT_DATA_DIR`` is set.

Attributes:
    DATA_DIR: Root data directory (``data/`` by default).
    CPS_EXTRACT_PATH: IPUMS CPS extract read by the microdata step.
    COVID_URL: NYT county-level cumulative cases and deaths CSV.
    POLICY_URL: OxCGRT US subnational policy-index CSV.
    FIPS_TABLE_URL: HTML page holding the county FIPS code table.
    N_CLUSTERS: Default k for county clustering (4).
    FIPS_TO_ABBREV: State FIPS code to USPS abbreviation.
    FIPS_TO_NAME: State FIPS code to state name (IPUMS STATEFIP labels).
'''

import os
from pathlib import Path

DATA_DIR = Path(os.environ.get('COVID_UNEMPLOYMENT_DATA_DIR', 'data'))

CPS_EXTRACT_PATH = Path(
    os.environ.get('CPS_EXTRACT_PATH', DATA_DIR / 'cps' / 'cps_extract.csv.gz')
)
COVID_PATH = DATA_DIR / 'covid' / 'us-counties.csv'
POLICY_PATH = DATA_DIR / 'policy' / 'OxCGRT_US_latest.csv'
FIPS_HTML_PATH = DATA_DIR / 'reference' / 'fips_codes.htm'
FIPS_LOOKUP_PATH = DATA_DIR / 'reference' / 'fips_codes.parquet'

UNEMPLOYMENT_SERIES_PATH = DATA_DIR / 'unemployment_series.parquet'
COVID_SERIES_PATH = DATA_DIR / 'covid_series.parquet'
POLICY_SERIES_PATH = DATA_DIR / 'policy_series.parquet'
FEATURES_PATH = DATA_DIR / 'features.parquet'
CLUSTERS_PATH = DATA_DIR / 'county_clusters.parquet'
REPORTS_DIR = DATA_DIR / 'reports'

COVID_URL = 'https://raw.githubusercontent.com/nytimes/covid-19-data/master/us-counties.csv'
POLICY_URL = (
    'https://raw.githubusercontent.com/OxCGRT/USA-covid-policy/master/data/OxCGRT_US_latest.csv'
)
FIPS_TABLE_URL = 'https://en.wikipedia.org/wiki/List_of_United_States_FIPS_codes_by_county'

N_CLUSTERS = int(os.environ.get('COVID_UNEMPLOYMENT_CLUSTERS', '4'))
RANDOM_STATE = 42
COVID_WINDOW_DAYS = 7
RATE_WINDOW_MONTHS = 3
RATE_LAGS = (1, 12)

# CPS reference week is the week containing the 12th
REF_DAY = 12

NATIONAL_CODE = '00'

FIPS_TO_ABBREV = {
    '01': 'AL', '02': 'AK', '04': 'AZ', '05': 'AR', '06': 'CA',
    '08': 'CO', '09': 'CT', '10': 'DE', '11': 'DC', '12': 'FL',
    '13': 'GA', '15': 'HI', '16': 'ID', '17': 'IL', '18': 'IN',
    '19': 'IA', '20': 'KS', '21': 'KY', '22': 'LA', '23': 'ME',
    '24': 'MD', '25': 'MA', '26': 'MI', '27': 'MN', '28': 'MS',
    '29': 'MO', '30': 'MT', '31': 'NE', '32': 'NV', '33': 'NH',
    '34': 'NJ', '35': 'NM', '36': 'NY', '37': 'NC', '38': 'ND',
    '39': 'OH', '40': 'OK', '41': 'OR', '42': 'PA', '44': 'RI',
    '45': 'SC', '46': 'SD', '47': 'TN', '48': 'TX', '49': 'UT',
    '50': 'VT', '51': 'VA', '53': 'WA', '54': 'WV', '55': 'WI',
    '56': 'WY', '72': 'PR', '78': 'VI',
}
ABBREV_TO_FIPS = {abbrev: fips for fips, abbrev in FIPS_TO_ABBREV.items()}

FIPS_TO_NAME = {
    '01': 'Alabama', '02': 'Alaska', '04': 'Arizona', '05': 'Arkansas',
    '06': 'California', '08': 'Colorado', '09': 'Connecticut',
    '10': 'Delaware', '11': 'District of Columbia', '12': 'Florida',
    '13': 'Georgia', '15': 'Hawaii', '16': 'Idaho', '17': 'Illinois',
    '18': 'Indiana', '19': 'Iowa', '20': 'Kansas', '21': 'Kentucky',
    '22': 'Louisiana', '23': 'Maine', '24': 'Maryland', '25': 'Massachusetts',
    '26': 'Michigan', '27': 'Minnesota', '28': 'Mississippi', '29': 'Missouri',
    '30': 'Montana', '31': 'Nebraska', '32': 'Nevada', '33': 'New Hampshire',
    '34': 'New Jersey', '35': 'New Mexico', '36': 'New York',
    '37': 'North Carolina', '38': 'North Dakota', '39': 'Ohio',
    '40': 'Oklahoma', '41': 'Oregon', '42': 'Pennsylvania',
    '44': 'Rhode Island', '45': 'South Carolina', '46': 'South Dakota',
    '47': 'Tennessee', '48': 'Texas', '49': 'Utah', '50': 'Vermont',
    '51': 'Virginia', '53': 'Washington', '54': 'West Virginia',
    '55': 'Wisconsin', '56': 'Wyoming', '72': 'Puerto Rico',
    '78': 'Virgin Islands',
}
