# tests/test_request_handler.py

import pytest
import requests

from errors import ErrorKind, TransportError
from models import Region
from request_handler import HotslogsRequestHandler


class FakeResponse:
    def __init__(self, status_code=200, content=b'<html></html>', url='https://www.hotslogs.com/x'):
        self.status_code = status_code
        self.content = content
        self.url = url


@pytest.fixture
def handler():
    return HotslogsRequestHandler(base_url='https://www.hotslogs.com/')


def record_calls(monkeypatch, handler, response=None, exc=None):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        if exc is not None:
            raise exc
        return response or FakeResponse()

    monkeypatch.setattr(handler.session, 'get', fake_get)
    return calls


def test_leaderboard_request(monkeypatch, handler):
    calls = record_calls(monkeypatch, handler, FakeResponse(content=b'rankings'))

    assert handler.fetch_leaderboard(Region.EU) == b'rankings'

    url, kwargs = calls[0]
    assert url == 'https://www.hotslogs.com/Rankings'
    assert kwargs['params'] == {'Region': 2, 'GameMode': 4, 'League': 'Grandmaster'}
    assert kwargs['headers'] == {
        'Accept-Language': 'en-US,en',
        'User-Agent': 'Matchmaking/1.0 (+http://www.ismatchmakingfixedyet.com)',
    }
    assert kwargs['timeout'] == 30
    assert handler.request_count == 1


def test_history_and_match_requests(monkeypatch, handler):
    calls = record_calls(monkeypatch, handler)

    handler.fetch_history(1456782)
    handler.fetch_match(123456789)

    assert calls[0][0] == 'https://www.hotslogs.com/Player/MatchHistory'
    assert calls[0][1]['params'] == {'PlayerID': 1456782}
    assert calls[1][0] == 'https://www.hotslogs.com/Player/MatchSummaryAjax'
    assert calls[1][1]['params'] == {'ReplayID': 123456789}


def test_cookies_are_never_kept(handler):
    assert handler.session.cookies.get_policy().allowed_domains() == []


@pytest.mark.parametrize('status', [404, 429, 500, 503])
def test_error_status_is_transport_error(monkeypatch, handler, status):
    record_calls(monkeypatch, handler, FakeResponse(status_code=status))
    with pytest.raises(TransportError) as exc:
        handler.fetch_history(1)
    assert exc.value.kind is ErrorKind.TRANSPORT
    assert str(status) in str(exc.value)


@pytest.mark.parametrize('error', [
    requests.ConnectionError('dns failure'),
    requests.Timeout('read timed out'),
    requests.TooManyRedirects('loop'),
])
def test_request_exceptions_are_transport_errors(monkeypatch, handler, error):
    record_calls(monkeypatch, handler, exc=error)
    with pytest.raises(TransportError) as exc:
        handler.fetch_match(5)
    assert exc.value.__cause__ is error
    assert handler.request_count == 0
