'''Build and read the FIPS lookup parquet.'''

from pathlib import Path

import polars as pl

from ..config import FIPS_HTML_PATH, FIPS_LOOKUP_PATH
from .parser import parse_fips_table


def build_fips_lookup(
    html_path: Path | str | None = None,
    out_path: Path | str | None = None,
) -> pl.DataFrame:
    '''Parse the saved FIPS page and write ``fips_codes.parquet``.

    Args:
        html_path: Saved HTML page. Defaults to data/reference/fips_codes.htm.
        out_path: Output parquet. Defaults to data/reference/fips_codes.parquet.

    Returns:
        The lookup DataFrame that was written.
    '''
    src = Path(html_path) if html_path is not None else FIPS_HTML_PATH
    dst = Path(out_path) if out_path is not None else FIPS_LOOKUP_PATH

    lookup = parse_fips_table(src.read_text(encoding='utf-8'))
    dst.parent.mkdir(parents=True, exist_ok=True)
    lookup.write_parquet(dst)
    print(f'Wrote {dst} ({lookup.height} rows)')
    return lookup


def read_fips_lookup(path: Path | str | None = None) -> pl.DataFrame | None:
    '''County and state names keyed by FIPS, or None before ``reference`` has run.

    The feature step treats a missing lookup as "no names" rather than an
    error, so the pipeline still runs offline from the CPS, NYT and OxCGRT
    files alone.
    '''
    p = Path(path) if path is not None else FIPS_LOOKUP_PATH
    if not p.exists():
        return None
    return pl.read_parquet(p)
