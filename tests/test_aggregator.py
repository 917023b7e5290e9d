from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from threading import Barrier

import pytest

from focus_api.aggregator import DailySessionAggregator
from focus_api.errors import Unauthorized, ValidationError


@pytest.fixture()
def aggregator(repo, clock) -> DailySessionAggregator:
    return DailySessionAggregator(repo, now=clock)


class TestToday:
    def test_zero_record_when_nothing_reported(self, aggregator, repo, clock):
        today = aggregator.get_today("alice")
        assert today["focus_minutes"] == 0
        assert today["cycles_completed"] == 0
        assert today["day"] == clock.now.date()
        assert repo.find_daily_record("alice", clock.now.date()) is None

    def test_unauthorized_without_owner(self, aggregator):
        with pytest.raises(Unauthorized):
            aggregator.get_today("")


class TestReportCycle:
    def test_minutes_add_and_cycles_overwrite(self, aggregator):
        first = aggregator.report_cycle("alice", 1500, 1)
        assert (first["focus_minutes"], first["cycles_completed"]) == (25, 1)

        second = aggregator.report_cycle("alice", 1500, 2)
        assert (second["focus_minutes"], second["cycles_completed"]) == (50, 2)

    def test_cycles_are_not_summed_after_timer_reset(self, aggregator):
        aggregator.report_cycle("alice", 1500, 1)
        aggregator.report_cycle("alice", 1500, 2)
        # Timer was reset: the new run reports 1 again.
        record = aggregator.report_cycle("alice", 1500, 1)
        assert record["focus_minutes"] == 75
        assert record["cycles_completed"] == 1
        assert aggregator.get_today("alice")["cycles_completed"] == 1

    def test_partial_minutes_are_floored(self, aggregator):
        assert aggregator.report_cycle("alice", 119, 1)["focus_minutes"] == 1

    def test_owners_are_independent(self, aggregator):
        aggregator.report_cycle("alice", 1500, 1)
        assert aggregator.get_today("bob")["focus_minutes"] == 0

    @pytest.mark.parametrize("seconds,cycles", [(-60, 1), (1500, -1)])
    def test_negative_report_rejected(self, aggregator, seconds, cycles):
        with pytest.raises(ValidationError):
            aggregator.report_cycle("alice", seconds, cycles)
        assert aggregator.get_today("alice")["focus_minutes"] == 0

    def test_midnight_opens_new_record(self, aggregator, repo, clock):
        clock.now = datetime(2025, 3, 10, 23, 59, 30)
        aggregator.report_cycle("alice", 1500, 1)
        clock.advance(minutes=1)

        after = aggregator.report_cycle("alice", 1500, 2)
        assert after["day"] == datetime(2025, 3, 11).date()
        assert (after["focus_minutes"], after["cycles_completed"]) == (25, 2)

        before = repo.find_daily_record("alice", datetime(2025, 3, 10).date())
        assert (before["focus_minutes"], before["cycles_completed"]) == (25, 1)

    def test_concurrent_reports_share_one_record(self, aggregator, repo, clock):
        workers = 8
        barrier = Barrier(workers)

        def report(n: int):
            barrier.wait()
            return aggregator.report_cycle("alice", 1500, n)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(report, range(1, workers + 1)))

        record = repo.find_daily_record("alice", clock.now.date())
        assert record["focus_minutes"] == 25 * workers
        assert 1 <= record["cycles_completed"] <= workers
        yesterday = clock.now.date() - timedelta(days=1)
        assert repo.find_daily_record("alice", yesterday) is None
