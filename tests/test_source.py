"""
Unit tests for the Open-Meteo source and payload validation
"""
import io
import json
import math
import urllib.error
from urllib.parse import parse_qs, urlparse

import pytest

from tidecast import source as source_module
from tidecast.errors import MalformedInputError, SourceError
from tidecast.source import OpenMeteoSource, parse_payload, safe_read_response
from tests.payloads import make_payload


class FakeResponse:
    """Minimal urlopen() response."""

    def __init__(self, body: bytes, headers=None):
        self._body = io.BytesIO(body)
        self.headers = headers or {}

    def read(self, size=-1):
        return self._body.read(size)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def http_error(code: int):
    return urllib.error.HTTPError('https://example.test', code, 'error', {}, None)


class TestParsePayload:
    """Tests for schema validation at the source boundary."""

    def test_valid_payload(self):
        samples = parse_payload(make_payload(days=1))
        assert len(samples) == 24
        assert samples[0].timestamp == '2025-12-02T00:00'
        assert isinstance(samples[0].height_m, float)

    @pytest.mark.parametrize("payload,field", [
        (None, 'hourly'),
        ([], 'hourly'),
        ({}, 'hourly'),
        ({'hourly': None}, 'hourly'),
        ({'hourly': {'sea_level_height_msl': [1.0]}}, 'hourly.time'),
        ({'hourly': {'time': ['2025-12-02T00:00']}}, 'hourly.sea_level_height_msl'),
        ({'hourly': {'time': '2025-12-02T00:00', 'sea_level_height_msl': [1.0]}}, 'hourly.time'),
    ])
    def test_missing_fields_named(self, payload, field):
        with pytest.raises(MalformedInputError) as exc:
            parse_payload(payload)
        assert exc.value.field == field
        assert field in str(exc.value)

    def test_length_mismatch(self):
        payload = {'hourly': {'time': ['2025-12-02T00:00', '2025-12-02T01:00'],
                              'sea_level_height_msl': [1.0]}}
        with pytest.raises(MalformedInputError, match="2 timestamps but 1 heights"):
            parse_payload(payload)

    def test_non_numeric_height(self):
        payload = {'hourly': {'time': ['2025-12-02T00:00'], 'sea_level_height_msl': ['high']}}
        with pytest.raises(MalformedInputError, match="non-numeric height at index 0"):
            parse_payload(payload)

    def test_invalid_timestamp(self):
        payload = {'hourly': {'time': [None], 'sea_level_height_msl': [1.0]}}
        with pytest.raises(MalformedInputError) as exc:
            parse_payload(payload)
        assert exc.value.field == 'hourly.time'

    @pytest.mark.parametrize("timestamp", ["garbage", "2025-13-02T00:00", "12/02/2025 00:00"])
    def test_timestamp_without_calendar_date(self, timestamp):
        """Bad dates are rejected here, not later in the classifier."""
        payload = {'hourly': {'time': [timestamp] * 3, 'sea_level_height_msl': [1.0, 2.0, 1.0]}}
        with pytest.raises(MalformedInputError, match="invalid timestamp at index 0") as exc:
            parse_payload(payload)
        assert exc.value.field == 'hourly.time'

    def test_null_height_becomes_nan(self):
        payload = {'hourly': {'time': ['2025-12-02T00:00'], 'sea_level_height_msl': [None]}}
        samples = parse_payload(payload)
        assert math.isnan(samples[0].height_m)

    def test_integer_heights_accepted(self):
        payload = {'hourly': {'time': ['2025-12-02T00:00'], 'sea_level_height_msl': [2]}}
        assert parse_payload(payload)[0].height_m == 2.0


class TestSafeReadResponse:
    """Tests for the response size limit."""

    def test_reads_body(self):
        assert safe_read_response(FakeResponse(b'{"a": 1}')) == b'{"a": 1}'

    def test_rejects_large_content_length(self):
        response = FakeResponse(b'', headers={'Content-Length': '5000'})
        with pytest.raises(SourceError, match="too large"):
            safe_read_response(response, max_size=1000)

    def test_rejects_oversized_body(self):
        with pytest.raises(SourceError, match="exceeded size limit"):
            safe_read_response(FakeResponse(b'x' * 11), max_size=10)


class TestOpenMeteoSource:
    """Tests for fetching from the marine API."""

    @pytest.fixture
    def source(self):
        return OpenMeteoSource(
            lat=36.0649, lon=120.3804, timezone_name='Asia/Shanghai',
            forecast_days=7, timeout=10, max_retries=2, retry_delay=0,
        )

    def test_url_parameters(self, source):
        url = urlparse(source.build_url())
        params = parse_qs(url.query)
        assert url.netloc == 'marine-api.open-meteo.com'
        assert params['hourly'] == ['sea_level_height_msl']
        assert params['timezone'] == ['Asia/Shanghai']
        assert params['forecast_days'] == ['7']
        assert params['latitude'] == ['36.0649']

    def test_fetch_samples(self, source, monkeypatch):
        body = json.dumps(make_payload(days=2)).encode()
        calls = []

        def fake_urlopen(url, timeout):
            calls.append((url, timeout))
            return FakeResponse(body)

        monkeypatch.setattr(source_module.urllib.request, 'urlopen', fake_urlopen)
        samples = source.fetch_samples()
        assert len(samples) == 48
        assert calls[0][1] == 10

    def test_retries_transient_failures(self, source, monkeypatch):
        body = json.dumps(make_payload(days=1)).encode()
        attempts = []

        def flaky_urlopen(url, timeout):
            attempts.append(url)
            if len(attempts) < 3:
                raise urllib.error.URLError('connection reset')
            return FakeResponse(body)

        monkeypatch.setattr(source_module.urllib.request, 'urlopen', flaky_urlopen)
        assert len(source.fetch_samples()) == 24
        assert len(attempts) == 3

    def test_gives_up_after_max_retries(self, source, monkeypatch):
        attempts = []

        def down_urlopen(url, timeout):
            attempts.append(url)
            raise http_error(503)

        monkeypatch.setattr(source_module.urllib.request, 'urlopen', down_urlopen)
        with pytest.raises(SourceError, match="status 503") as exc:
            source.fetch_payload()
        assert exc.value.status == 503
        assert len(attempts) == 3

    def test_client_error_not_retried(self, source, monkeypatch):
        attempts = []

        def bad_request(url, timeout):
            attempts.append(url)
            raise http_error(400)

        monkeypatch.setattr(source_module.urllib.request, 'urlopen', bad_request)
        with pytest.raises(SourceError) as exc:
            source.fetch_payload()
        assert exc.value.status == 400
        assert len(attempts) == 1

    def test_timeout_is_source_error(self, source, monkeypatch):
        def slow_urlopen(url, timeout):
            raise TimeoutError('timed out')

        monkeypatch.setattr(source_module.urllib.request, 'urlopen', slow_urlopen)
        with pytest.raises(SourceError, match="request failed"):
            source.fetch_payload()

    def test_invalid_json(self, source, monkeypatch):
        monkeypatch.setattr(
            source_module.urllib.request, 'urlopen',
            lambda url, timeout: FakeResponse(b'<html>maintenance</html>'),
        )
        with pytest.raises(SourceError, match="invalid JSON"):
            source.fetch_payload()

    def test_body_not_utf8(self, source, monkeypatch):
        monkeypatch.setattr(
            source_module.urllib.request, 'urlopen',
            lambda url, timeout: FakeResponse(b'\xff\xfe{"hourly"'),
        )
        with pytest.raises(SourceError, match="invalid JSON"):
            source.fetch_payload()

    def test_malformed_payload_propagates(self, source, monkeypatch):
        monkeypatch.setattr(
            source_module.urllib.request, 'urlopen',
            lambda url, timeout: FakeResponse(b'{"error": true, "reason": "bad"}'),
        )
        with pytest.raises(MalformedInputError):
            source.fetch_samples()
