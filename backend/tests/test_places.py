import requests

from game_directory.services.directory.places import HealthProbe, PlaceMetadataFetcher


class FakeResponse:
    def __init__(self, status=200, payload=None):
        self.status_code = status
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error', response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _fetcher(session, retries=3):
    delays = []
    fetcher = PlaceMetadataFetcher(
        'http://places.test/v1/places/{place_id}',
        retries=retries,
        backoff_base=2.0,
        session=session,
        sleep=delays.append,
    )
    return fetcher, delays


def test_fetch_success_first_try():
    session = FakeSession([FakeResponse(payload={'name': 'Crossroads', 'place_id': 1818})])
    fetcher, delays = _fetcher(session)
    assert fetcher.fetch(1818) == {'name': 'Crossroads', 'place_id': 1818}
    assert session.calls == ['http://places.test/v1/places/1818']
    assert delays == []


def test_fetch_retries_with_exponential_backoff():
    session = FakeSession([
        requests.ConnectionError('refused'),
        requests.Timeout('slow'),
        FakeResponse(status=503),
        FakeResponse(payload={'name': 'Crossroads'}),
    ])
    fetcher, delays = _fetcher(session)
    assert fetcher.fetch(1818) == {'name': 'Crossroads'}
    assert delays == [2.0, 4.0, 8.0]


def test_fetch_gives_up_after_retries():
    session = FakeSession([requests.ConnectionError('down')] * 4)
    fetcher, delays = _fetcher(session)
    assert fetcher.fetch(1818) is None
    assert len(session.calls) == 4
    assert delays == [2.0, 4.0, 8.0]


def test_fetch_does_not_retry_client_errors():
    session = FakeSession([FakeResponse(status=404)])
    fetcher, delays = _fetcher(session)
    assert fetcher.fetch(42) is None
    assert len(session.calls) == 1
    assert delays == []


def test_fetch_rejects_bad_payloads():
    fetcher, _ = _fetcher(FakeSession([FakeResponse(payload=ValueError('not json'))]))
    assert fetcher.fetch(1) is None
    fetcher, _ = _fetcher(FakeSession([FakeResponse(payload=['not', 'a', 'mapping'])]))
    assert fetcher.fetch(1) is None


def test_health_probe():
    session = FakeSession([FakeResponse(payload={'status': 'ok'}), requests.ConnectionError('down')])
    probe = HealthProbe(timeout=1, session=session)
    assert probe.probe('10.0.0.5', 7777) == {'status': 'ok'}
    assert probe.probe('10.0.0.5', 7777) is None
    assert session.calls[0] == 'http://10.0.0.5:7777/health'
