from unittest.mock import MagicMock

import pytest

from reviewcrawl.exceptions import HttpFetchError
from reviewcrawl.services.retrying_fetcher import RetryingFetcher


def _err(url="http://x"):
    return HttpFetchError(url, status_code=503)


def test_returns_first_success_without_sleeping():
    inner = MagicMock()
    inner.fetch.return_value = "page"
    sleeps = []
    f = RetryingFetcher(inner, max_attempts=3, base_delay=1.0, sleep=sleeps.append)

    assert f.fetch("http://x") == "page"
    assert sleeps == []
    assert inner.fetch.call_count == 1


def test_linear_backoff_between_attempts():
    inner = MagicMock()
    inner.fetch.side_effect = [_err(), _err(), "page"]
    sleeps = []
    f = RetryingFetcher(inner, max_attempts=3, base_delay=1.0, sleep=sleeps.append)

    assert f.fetch("http://x") == "page"
    assert sleeps == [1.0, 2.0]


def test_raises_last_error_after_exhausting_attempts():
    inner = MagicMock()
    last = _err()
    inner.fetch.side_effect = [_err(), _err(), last]
    sleeps = []
    f = RetryingFetcher(inner, max_attempts=3, base_delay=0.5, sleep=sleeps.append)

    with pytest.raises(HttpFetchError) as exc:
        f.fetch("http://x")
    assert exc.value is last
    assert inner.fetch.call_count == 3
    # no wait after the final failure
    assert sleeps == [0.5, 1.0]


def test_single_attempt_never_sleeps():
    inner = MagicMock()
    inner.fetch.side_effect = _err()
    sleeps = []
    f = RetryingFetcher(inner, max_attempts=1, base_delay=1.0, sleep=sleeps.append)
    with pytest.raises(HttpFetchError):
        f.fetch("http://x")
    assert sleeps == []


def test_non_fetch_errors_are_not_retried():
    inner = MagicMock()
    inner.fetch.side_effect = KeyError("bug")
    sleeps = []
    f = RetryingFetcher(inner, max_attempts=3, sleep=sleeps.append)
    with pytest.raises(KeyError):
        f.fetch("http://x")
    assert inner.fetch.call_count == 1
    assert sleeps == []


def test_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        RetryingFetcher(MagicMock(), max_attempts=0)
    with pytest.raises(ValueError):
        RetryingFetcher(MagicMock(), base_delay=-1)
