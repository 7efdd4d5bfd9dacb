from datetime import datetime
from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from reviewcrawl.api.routers.crawler import ConfigUpdate, StartRequest, create_crawler_router
from reviewcrawl.domain import CrawlerSettings, CrawlerStatus, RunStatistics


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def _status(running=False):
    return CrawlerStatus.from_parts(
        running=running,
        state="running" if running else "idle",
        last_run=None,
        stats=RunStatistics().snapshot(),
        new_reviews=[],
    )


def _router(orchestrator=None, reviews_repo=None, statistics_repo=None, settings_service=None):
    orchestrator = orchestrator or Mock(status=Mock(return_value=_status()))
    settings_service = settings_service or Mock(current=CrawlerSettings())
    return create_crawler_router(orchestrator, settings_service, reviews_repo or Mock(), statistics_repo)


def test_start_passes_full_refresh_flag():
    orchestrator = Mock(start=Mock(return_value=True), status=Mock(return_value=_status(True)))
    endpoint = _get_endpoint(_router(orchestrator), "/crawler/start", "POST")

    body = endpoint(StartRequest(full_refresh=True))

    orchestrator.start.assert_called_once_with(True)
    assert body["accepted"] is True
    assert body["status"]["running"] is True


def test_start_without_body_is_incremental():
    orchestrator = Mock(start=Mock(return_value=True), status=Mock(return_value=_status(True)))
    endpoint = _get_endpoint(_router(orchestrator), "/crawler/start", "POST")
    endpoint(None)
    orchestrator.start.assert_called_once_with(False)


def test_start_conflicts_when_already_running():
    orchestrator = Mock(start=Mock(return_value=False), status=Mock(return_value=_status(True)))
    endpoint = _get_endpoint(_router(orchestrator), "/crawler/start", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartRequest())
    assert exc.value.status_code == 409


def test_stop_reports_acknowledgement():
    orchestrator = Mock(stop=Mock(return_value=False), status=Mock(return_value=_status()))
    endpoint = _get_endpoint(_router(orchestrator), "/crawler/stop", "POST")
    body = endpoint()
    assert body["acknowledged"] is False
    assert body["status"]["state"] == "idle"


def test_config_returns_settings():
    endpoint = _get_endpoint(_router(), "/crawler/config", "GET")
    body = endpoint()
    assert body["max_retries"] == 3
    assert body["schedule"] == "0 0 * * *"


def test_stats_summarizes_store():
    repo = Mock(list_topics=Mock(return_value=["Cancer", "Heart"]), count=Mock(return_value=7))
    endpoint = _get_endpoint(_router(reviews_repo=repo), "/crawler/stats", "GET")
    assert endpoint() == {"total_reviews": 7, "unique_topics": 2, "topics": ["Cancer", "Heart"]}


def test_stats_hides_internal_errors():
    repo = Mock(list_topics=Mock(side_effect=RuntimeError("password=secret")))
    endpoint = _get_endpoint(_router(reviews_repo=repo), "/crawler/stats", "GET")
    with pytest.raises(HTTPException) as exc:
        endpoint()
    assert exc.value.status_code == 500
    assert "secret" not in exc.value.detail


def test_runs_lists_persisted_statistics():
    stats = RunStatistics(lambda: datetime(2024, 1, 1))
    stats.begin()
    stats.record_success("A")
    stats.finalize()
    stats_repo = Mock(list_recent=Mock(return_value=[stats.snapshot()]))
    endpoint = _get_endpoint(_router(statistics_repo=stats_repo), "/crawler/runs", "GET")

    runs = endpoint(limit=5)

    stats_repo.list_recent.assert_called_once_with(limit=5)
    assert runs[0]["successful_reviews"] == 1


def test_runs_without_statistics_repo_is_empty():
    endpoint = _get_endpoint(_router(), "/crawler/runs", "GET")
    assert endpoint(limit=5) == []


def test_update_config_passes_only_given_fields():
    updated = CrawlerSettings(crawl_delay=2.0, auto_schedule=False)
    settings_service = Mock(current=CrawlerSettings(), update=Mock(return_value=updated))
    endpoint = _get_endpoint(_router(settings_service=settings_service), "/crawler/config", "PUT")

    body = endpoint(ConfigUpdate(crawl_delay=2.0, auto_schedule=False))

    settings_service.update.assert_called_once_with({"crawl_delay": 2.0, "auto_schedule": False})
    assert body["crawl_delay"] == 2.0
    assert body["auto_schedule"] is False


def test_update_config_rejects_invalid_settings():
    settings_service = Mock(current=CrawlerSettings(), update=Mock(side_effect=ValueError("max_retries must be >= 1")))
    endpoint = _get_endpoint(_router(settings_service=settings_service), "/crawler/config", "PUT")
    with pytest.raises(HTTPException) as exc:
        endpoint(ConfigUpdate(max_retries=0))
    assert exc.value.status_code == 400
    assert "max_retries" in exc.value.detail


def test_empty_config_update_is_a_noop():
    settings_service = Mock(current=CrawlerSettings())
    endpoint = _get_endpoint(_router(settings_service=settings_service), "/crawler/config", "PUT")
    assert endpoint(ConfigUpdate())["max_retries"] == 3
    settings_service.update.assert_not_called()


def test_config_update_model_rejects_unknown_fields():
    with pytest.raises(ValueError):
        ConfigUpdate(no_such_field=1)
