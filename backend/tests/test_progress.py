from studyhub.models import UserStats
from studyhub.progress import ProgressTracker, XPAwarded, level_for_xp


def test_level_for_xp():
	assert level_for_xp(0) == 1
	assert level_for_xp(99) == 1
	assert level_for_xp(100) == 2
	assert level_for_xp(250, xp_per_level=50) == 6


def test_record_reports_level_up(progress):
	assert progress.record(XPAwarded(60, "a")) is None
	assert progress.record(XPAwarded(60, "b")) == 2
	assert progress.stats.xp == 120
	assert progress.stats.level == 2
	assert [e.source for e in progress.history] == ["a", "b"]


def test_non_positive_awards_are_ignored(progress):
	progress.record(XPAwarded(0, "nothing"))
	progress.record(XPAwarded(-5, "negative"))
	assert progress.stats.xp == 0
	assert list(progress.history) == []


def test_stats_are_a_copy():
	tracker = ProgressTracker(UserStats(xp=250, streak=3), xp_per_level=100)
	assert tracker.stats.level == 3
	tracker.stats.xp = 9999
	assert tracker.stats.xp == 250


def test_history_keeps_only_recent_awards():
	tracker = ProgressTracker(xp_per_level=100, history_limit=3)
	for i in range(5):
		tracker.record(XPAwarded(1, f"award{i}"))
	assert [e.source for e in tracker.history] == ["award2", "award3", "award4"]
	assert tracker.stats.xp == 5
