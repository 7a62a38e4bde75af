import httpx
import pytest

from covid_unemployment import config
from covid_unemployment._client import (
    DEFAULT_HEADERS,
    create_client,
    download_file,
    get_with_retry,
)
from covid_unemployment.download import download_covid, download_fips_table, download_policy


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_create_client_sends_default_headers():
    client = create_client(http2=False, headers={'X-Test': '1'})
    try:
        assert client.headers['User-Agent'] == DEFAULT_HEADERS['User-Agent']
        assert client.headers['X-Test'] == '1'
    finally:
        client.close()


def test_get_with_retry_backs_off_on_server_errors():
    statuses = iter([503, 429, 200])

    def handler(request):
        return httpx.Response(next(statuses), text='ok')

    waits = []
    with _client(handler) as client:
        r = get_with_retry(client, 'https://example.org/data.csv', sleep=waits.append)

    assert r.status_code == 200
    assert waits == [1, 2]


def test_get_with_retry_raises_on_client_error():
    with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            get_with_retry(client, 'https://example.org/missing', sleep=lambda s: None)


def test_get_with_retry_raises_after_exhausting_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    with _client(handler) as client:
        with pytest.raises(httpx.HTTPStatusError):
            get_with_retry(client, 'https://example.org/flaky', max_retries=3, sleep=lambda s: None)
    assert len(calls) == 3


def test_download_file_creates_parent_directories(tmp_path):
    out = tmp_path / 'nested' / 'dir' / 'file.csv'
    with _client(lambda request: httpx.Response(200, content=b'a,b\n1,2\n')) as client:
        path = download_file(client, 'https://example.org/file.csv', out)
    assert path == out
    assert out.read_bytes() == b'a,b\n1,2\n'


def test_download_file_retries_then_streams(tmp_path):
    statuses = iter([503, 200])

    def handler(request):
        return httpx.Response(next(statuses), content=b'x' * 3000)

    waits = []
    out = tmp_path / 'big.csv'
    with _client(handler) as client:
        download_file(client, 'https://example.org/big.csv', out, sleep=waits.append)

    assert waits == [1]
    assert out.read_bytes() == b'x' * 3000


def test_download_file_error_leaves_no_file(tmp_path):
    out = tmp_path / 'missing.csv'
    with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            download_file(
                client, 'https://example.org/missing.csv', out,
                max_retries=2, sleep=lambda s: None,
            )
    assert not out.exists()


def test_download_covid_uses_nyt_url(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text='date,county,state,fips,cases,deaths\n')

    with _client(handler) as client:
        path = download_covid(tmp_path, client=client)

    assert seen == [config.COVID_URL]
    assert path == tmp_path / 'covid' / 'us-counties.csv'
    assert path.read_text().startswith('date,county')



def test_download_policy_uses_oxcgrt_url(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text='CountryCode,RegionCode,Date\n')

    with _client(handler) as client:
        path = download_policy(tmp_path, client=client)

    assert seen == [config.POLICY_URL]
    assert path == tmp_path / 'policy' / 'OxCGRT_US_latest.csv'
    assert path.read_text().startswith('CountryCode,RegionCode')


def test_download_fips_table_saves_html(tmp_path):
    with _client(lambda request: httpx.Response(200, text='<table></table>')) as client:
        path = download_fips_table(tmp_path, client=client, url='https://example.org/fips')
    assert path == tmp_path / 'reference' / 'fips_codes.htm'
    assert path.read_text() == '<table></table>'
