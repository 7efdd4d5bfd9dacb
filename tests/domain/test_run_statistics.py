from datetime import datetime, timedelta

from reviewcrawl.domain import RunStatistics
from reviewcrawl.domain.run_statistics import ERROR_LOG_SIZE


class FakeClock:
    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def test_begin_and_finalize_set_timestamps():
    clock = FakeClock()
    stats = RunStatistics(clock)
    stats.begin()
    snap = stats.snapshot()
    assert snap.running is True
    assert snap.started_at == clock.now
    assert snap.finished_at is None

    clock.advance(minutes=5)
    stats.finalize()
    snap = stats.snapshot()
    assert snap.running is False
    assert snap.finished_at == clock.now


def test_success_and_failure_counters_add_up():
    stats = RunStatistics(FakeClock())
    stats.begin()
    stats.record_success("A")
    stats.record_success("B")
    stats.record_failure("C", "boom")
    snap = stats.snapshot()
    assert snap.total_processed == 3
    assert snap.successful_reviews == 2
    assert snap.failed_reviews == 1
    assert snap.successful_reviews + snap.failed_reviews == snap.total_processed
    assert snap.current_review == "C"
    assert len(snap.error_log) == 1
    assert "boom" in snap.error_log[0]


def test_error_log_keeps_only_the_latest_entries():
    stats = RunStatistics(FakeClock())
    for i in range(ERROR_LOG_SIZE + 5):
        stats.add_error(f"error {i}")
    snap = stats.snapshot()
    assert len(snap.error_log) == ERROR_LOG_SIZE
    assert snap.error_log[0].endswith("error 5")
    assert snap.error_log[-1].endswith(f"error {ERROR_LOG_SIZE + 4}")


def test_error_entries_are_timestamped():
    clock = FakeClock()
    stats = RunStatistics(clock)
    stats.add_error("oops")
    assert stats.snapshot().error_log[0] == f"{clock.now.isoformat()}: oops"


def test_throughput_uses_whole_minutes():
    clock = FakeClock()
    stats = RunStatistics(clock)
    stats.begin()
    stats.record_success("A")
    # less than a minute in: unchanged
    assert stats.snapshot().items_per_minute == 0.0

    clock.advance(minutes=2, seconds=30)
    stats.record_success("B")
    stats.record_success("C")
    stats.record_success("D")
    assert stats.snapshot().items_per_minute == 2.0


def test_snapshot_is_a_copy():
    stats = RunStatistics(FakeClock())
    stats.record_processed_topic("Cancer")
    snap = stats.snapshot()
    stats.record_processed_topic("Heart")
    assert snap.processed_topics == ("Cancer",)
    assert snap.processed_topic_count == 1
    assert stats.snapshot().processed_topic_count == 2


def test_recompute_throughput_tracks_elapsed_time():
    clock = FakeClock()
    stats = RunStatistics(clock)
    stats.begin()
    clock.advance(minutes=1)
    stats.record_success("A")
    stats.record_success("B")
    assert stats.snapshot().items_per_minute == 2.0

    clock.advance(minutes=3)
    stats.recompute_throughput()
    assert stats.snapshot().items_per_minute == 0.5
