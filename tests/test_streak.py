"""Tests for daily streak transitions."""

from datetime import datetime, timedelta, timezone

from lingo_engine.progression.streak import StreakState, classify, evaluate_streak

NOW = datetime(2026, 3, 10, 9, 30)


class TestClassify:
    def test_no_history(self):
        assert classify(None, NOW) == StreakState.NO_HISTORY

    def test_garbage_date_is_no_history(self):
        assert classify("yesterday", NOW) == StreakState.NO_HISTORY

    def test_same_day(self):
        assert classify(NOW.replace(hour=0, minute=1), NOW) == StreakState.ACTIVE_TODAY

    def test_calendar_day_not_24_hours(self):
        # 23:50 the previous evening is less than 24h ago but still yesterday
        late_last_night = datetime(2026, 3, 9, 23, 50)
        assert classify(late_last_night, NOW) == StreakState.ACTIVE_RECENT
        # 23:59 on the 8th is under 34h ago but two calendar days back
        assert classify(datetime(2026, 3, 8, 23, 59), NOW) == StreakState.LAPSED

    def test_timezone_aware_dates_use_now_timezone(self):
        tz = timezone(timedelta(hours=5, minutes=30))
        now = datetime(2026, 3, 10, 1, 0, tzinfo=tz)
        # 20:00 UTC on the 9th is 01:30 on the 10th in +05:30
        last = datetime(2026, 3, 9, 20, 0, tzinfo=timezone.utc)
        assert classify(last, now) == StreakState.ACTIVE_TODAY


class TestEvaluateStreak:
    def test_first_activity_starts_streak(self):
        update = evaluate_streak(None, NOW, 0, 0)
        assert update.current_streak == 1
        assert update.longest_streak == 1
        assert update.last_active_date == NOW
        assert update.changed is True

    def test_same_day_is_idempotent(self):
        earlier = NOW - timedelta(hours=2)
        update = evaluate_streak(earlier, NOW, 4, 9)
        assert update.current_streak == 4
        assert update.longest_streak == 9
        assert update.last_active_date == earlier
        assert update.changed is False

    def test_yesterday_increments(self):
        update = evaluate_streak(NOW - timedelta(days=1), NOW, 4, 4)
        assert update.state == StreakState.ACTIVE_RECENT
        assert update.current_streak == 5
        assert update.longest_streak == 5

    def test_gap_resets(self):
        update = evaluate_streak(NOW - timedelta(days=3), NOW, 6, 6)
        assert update.state == StreakState.LAPSED
        assert update.current_streak == 1
        assert update.longest_streak == 6

    def test_longest_never_decreases(self):
        longest = 0
        last = None
        current = 0
        day = NOW
        for gap in [0, 1, 1, 1, 4, 1, 0, 2, 1]:
            day = day + timedelta(days=gap)
            update = evaluate_streak(last, day, current, longest)
            assert update.longest_streak >= longest
            assert update.longest_streak >= update.current_streak
            last, current, longest = update.last_active_date, update.current_streak, update.longest_streak
