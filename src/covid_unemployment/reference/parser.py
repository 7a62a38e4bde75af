'''Extract the county FIPS lookup from a saved HTML code table.

The source page lists one county per row with a five-digit FIPS code,
the county name and the state name.  Column order and header wording
differ between mirrors of the table, so columns are located by header
text: the first header containing ``fips``, then ``county``, then
``state``.

Attributes:
    FOOTNOTE_RE: Compiled regex matching bracketed footnote markers.
    LOOKUP_SCHEMA: Column names and dtypes of the returned lookup.
'''

import logging
import re

import polars as pl
from bs4 import BeautifulSoup, Tag

from ..config import FIPS_TO_ABBREV

log = logging.getLogger(__name__)

FOOTNOTE_RE = re.compile(r'\[[^\]]*\]')

LOOKUP_SCHEMA = {
    'county_fips': pl.Utf8,
    'county_name': pl.Utf8,
    'state_name': pl.Utf8,
    'state_fips': pl.Utf8,
    'state_abbrev': pl.Utf8,
}


def clean_cell(text: str) -> str:
    '''Strip footnote markers, non-breaking spaces and surrounding whitespace.'''
    return FOOTNOTE_RE.sub('', text).replace('\xa0', ' ').strip()


def _header_cells(table: Tag) -> list[str]:
    for tr in table.find_all('tr'):
        ths = tr.find_all('th', recursive=False)
        if ths:
            return [clean_cell(th.get_text()).lower() for th in ths]
    return []


def locate_columns(headers: list[str]) -> tuple[int, int, int] | None:
    '''Return (fips, county, state) column indexes, or None if any is missing.

    Args:
        headers: Lower-cased header texts of one table.
    '''
    used: set[int] = set()
    found = []
    for key in ('fips', 'county', 'state'):
        idx = next(
            (i for i, h in enumerate(headers) if key in h and i not in used),
            None,
        )
        if idx is None:
            return None
        used.add(idx)
        found.append(idx)
    return found[0], found[1], found[2]


def _parse_table(table: Tag, columns: tuple[int, int, int], ncols: int) -> list[tuple[str, ...]]:
    fips_idx, county_idx, state_idx = columns
    rows = []
    last_state: str | None = None

    for tr in table.find_all('tr'):
        tds = tr.find_all('td', recursive=False)
        if not tds:
            continue
        cells = [clean_cell(td.get_text()) for td in tds]

        # state cell spanning several rows is only present on the first one
        if len(cells) == ncols - 1 and state_idx == ncols - 1 and last_state:
            cells.append(last_state)
        if len(cells) < ncols:
            log.warning('Skipping short FIPS table row: %s', cells)
            continue

        fips = cells[fips_idx]
        if not fips.isdigit() or len(fips) > 5:
            log.warning('Skipping row with non-numeric FIPS %r', fips)
            continue

        county_fips = fips.zfill(5)
        state_fips = county_fips[:2]
        state_name = cells[state_idx]
        last_state = state_name
        rows.append((
            county_fips,
            cells[county_idx],
            state_name,
            state_fips,
            FIPS_TO_ABBREV.get(state_fips),
        ))
    return rows


def parse_fips_table(html: str) -> pl.DataFrame:
    '''Parse every FIPS code table on the page into one lookup frame.

    Args:
        html: Raw HTML of the code table page.

    Returns:
        Polars DataFrame with columns county_fips, county_name, state_name,
        state_fips and state_abbrev, one row per county FIPS code.

    Raises:
        RuntimeError: If no table with FIPS, county and state columns is found
            or the matching tables contain no usable rows.
    '''
    soup = BeautifulSoup(html, 'lxml')
    rows: list[tuple[str, ...]] = []
    matched = 0

    for table in soup.find_all('table'):
        headers = _header_cells(table)
        columns = locate_columns(headers)
        if columns is None:
            continue
        matched += 1
        rows.extend(_parse_table(table, columns, len(headers)))

    if not matched:
        raise RuntimeError('No FIPS code table found on page')
    if not rows:
        raise RuntimeError('FIPS code table contained no usable rows')

    return (
        pl.DataFrame(rows, schema=LOOKUP_SCHEMA, orient='row')
        .unique(subset='county_fips', keep='first', maintain_order=True)
        .sort('county_fips')
    )
