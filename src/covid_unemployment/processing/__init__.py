'''Processing steps that turn raw inputs into monthly regional series.

Each module reads one raw input (plus, where needed, the FIPS lookup)
and produces a tidy Parquet dataset keyed by
``(geographic_type, geographic_code, ref_date)``:

- :mod:`~covid_unemployment.processing.microdata` -- weighted labor-force
  aggregates from the CPS extract (national, state, county).
- :mod:`~covid_unemployment.processing.covid` -- NYT cumulative counts
  turned into daily and monthly new cases/deaths.
- :mod:`~covid_unemployment.processing.policy` -- OxCGRT state policy
  indices averaged by month.
- :mod:`~covid_unemployment.processing.features` -- joins the three,
  adds lag/rolling/difference features and zero-rate flags.

``ref_date`` is always the 12th of the reference month so every source
lines up with the CPS reference week.

Attributes:
    KEY_COLS: Columns identifying one region-month row.
    REGION_COLS: Columns identifying one region.
'''

REGION_COLS = ['geographic_type', 'geographic_code']
KEY_COLS = [*REGION_COLS, 'ref_date']
