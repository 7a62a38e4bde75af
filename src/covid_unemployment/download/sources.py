'''Download the NYT COVID file, the OxCGRT policy file, and the FIPS page.'''

from __future__ import annotations

from pathlib import Path

import httpx

from .. import config
from .._client import create_client, download_file


def _fetch(url: str, out_path: Path, client: httpx.Client | None) -> Path:
    own_client = client is None
    if client is None:
        client = create_client()

    try:
        download_file(client, url, out_path)
        print(f'  saved {out_path.name}')
        return out_path
    finally:
        if own_client:
            client.close()


def download_covid(
    data_dir: Path | None = None,
    *,
    client: httpx.Client | None = None,
) -> Path:
    '''Download NYT ``us-counties.csv`` to ``data/covid/us-counties.csv``.

    Args:
        data_dir: Root data directory.  Defaults to :data:`config.DATA_DIR`.
        client: Optional pre-built :class:`httpx.Client`.  A new client
            is created (and closed on exit) if not provided.

    Returns:
        Path of the saved file.
    '''
    base = data_dir or config.DATA_DIR
    return _fetch(config.COVID_URL, base / 'covid' / 'us-counties.csv', client)


def download_policy(
    data_dir: Path | None = None,
    *,
    client: httpx.Client | None = None,
) -> Path:
    '''Download the OxCGRT US policy CSV to ``data/policy/``.'''
    base = data_dir or config.DATA_DIR
    return _fetch(config.POLICY_URL, base / 'policy' / 'OxCGRT_US_latest.csv', client)


def download_fips_table(
    data_dir: Path | None = None,
    *,
    client: httpx.Client | None = None,
    url: str = config.FIPS_TABLE_URL,
) -> Path:
    '''Save the county FIPS code page to ``data/reference/fips_codes.htm``.'''
    base = data_dir or config.DATA_DIR
    return _fetch(url, base / 'reference' / 'fips_codes.htm', client)
