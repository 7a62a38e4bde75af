'''HTTP access for the three public inputs: NYT counts, OxCGRT, the FIPS page.

All of them are static files served from GitHub or Wikipedia.  Wikipedia
refuses the default httpx agent, so every client sends a browser-like
User-Agent.  GitHub raw hosting answers bursts with 429 and occasionally
503, which :func:`get_with_retry` and :func:`download_file` wait out with
exponential back-off capped at two minutes.

Attributes:
    USER_AGENT: User-Agent string sent with every request.
    DEFAULT_HEADERS: Default header dict merged into every client.
    DEFAULT_TIMEOUT: Per-request timeout in seconds (60).
    MAX_RETRIES: Attempts made before a 429/5xx becomes an error (8).
'''

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import httpx

USER_AGENT = 'Mozilla/5.0 (compatible; covid-unemployment/0.1.0)'
DEFAULT_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,text/csv,application/xhtml+xml,*/*;q=0.8',
    'Accept-Language': 'en-us,en;q=0.5',
}
DEFAULT_TIMEOUT = 60.0
MAX_RETRIES = 8
CHUNK_SIZE = 1 << 20


def create_client(
    *,
    http2: bool = True,
    headers: Optional[dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Client:
    '''Client used by the download stage; redirects are followed.

    *headers* are merged on top of :data:`DEFAULT_HEADERS`.  The caller
    closes the client.
    '''
    merged = {**DEFAULT_HEADERS}
    if headers:
        merged.update(headers)
    return httpx.Client(
        http2=http2,
        headers=merged,
        timeout=timeout,
        follow_redirects=True,
    )


def _backoff(status_code: int, attempt: int, sleep) -> bool:
    '''Wait before the next attempt if *status_code* is worth retrying.'''
    if status_code != 429 and status_code < 500:
        return False
    wait = min(2**attempt, 120)
    print(f'    [{status_code}] retrying in {wait}s ...')
    sleep(wait)
    return True


def get_with_retry(
    client: httpx.Client,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = MAX_RETRIES,
    sleep=time.sleep,
) -> httpx.Response:
    '''GET *url*, retrying 429 and 5xx answers up to *max_retries* times.

    *sleep* receives the wait in seconds (1, 2, 4, ... up to 120).

    Raises:
        httpx.HTTPStatusError: On a 4xx other than 429, or when the last
            attempt still fails.
    '''
    for attempt in range(max_retries):
        r = client.get(url, timeout=timeout)
        if _backoff(r.status_code, attempt, sleep):
            continue
        r.raise_for_status()
        return r
    r.raise_for_status()
    return r


def download_file(
    client: httpx.Client,
    url: str,
    path: Path,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = MAX_RETRIES,
    sleep=time.sleep,
) -> Path:
    '''Stream *url* to *path* in chunks, creating parent directories.

    Retries like :func:`get_with_retry`.  *path* is only opened once a
    successful response has arrived, so an error status leaves any
    previous copy in place.
    '''
    path.parent.mkdir(parents=True, exist_ok=True)
    for attempt in range(max_retries):
        with client.stream('GET', url, timeout=timeout) as r:
            if _backoff(r.status_code, attempt, sleep):
                continue
            r.raise_for_status()
            with path.open('wb') as fh:
                for chunk in r.iter_bytes(CHUNK_SIZE):
                    fh.write(chunk)
            return path
    r.raise_for_status()
    return path
