"""Daily streak transitions on calendar-day granularity."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel


class StreakState(StrEnum):
    """Where the learner stands relative to their last active day."""

    NO_HISTORY = "no_history"
    ACTIVE_TODAY = "active_today"
    ACTIVE_RECENT = "active_recent"
    LAPSED = "lapsed"


class StreakUpdate(BaseModel):
    state: StreakState
    current_streak: int
    longest_streak: int
    last_active_date: datetime | None
    changed: bool


def _calendar_day(moment: datetime, now: datetime) -> date:
    """Calendar day of `moment` as seen in `now`'s timezone."""
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.date()


def classify(last_active: datetime | None, now: datetime) -> StreakState:
    """Classify `last_active` relative to `now` by calendar days."""
    if not isinstance(last_active, datetime):
        return StreakState.NO_HISTORY
    days = (now.date() - _calendar_day(last_active, now)).days
    if days <= 0:
        return StreakState.ACTIVE_TODAY
    if days == 1:
        return StreakState.ACTIVE_RECENT
    return StreakState.LAPSED


def evaluate_streak(
    last_active: datetime | None,
    now: datetime,
    current_streak: int = 0,
    longest_streak: int = 0,
) -> StreakUpdate:
    """Apply one activity event to a streak.

    Same-day activity leaves the counters and timestamp alone. Activity the
    day after extends the streak; anything older restarts it at 1.

    Args:
        last_active: Previous activity timestamp, or None.
        now: Time of the current activity.
        current_streak: Streak before the event.
        longest_streak: Best streak before the event.

    Returns:
        The new counters and the timestamp to persist.
    """
    current = max(0, int(current_streak or 0))
    longest = max(0, int(longest_streak or 0))
    state = classify(last_active, now)

    if state == StreakState.ACTIVE_TODAY:
        return StreakUpdate(
            state=state,
            current_streak=current,
            longest_streak=max(longest, current),
            last_active_date=last_active,
            changed=False,
        )

    if state == StreakState.ACTIVE_RECENT:
        current += 1
    else:
        current = 1

    return StreakUpdate(
        state=state,
        current_streak=current,
        longest_streak=max(longest, current),
        last_active_date=now,
        changed=True,
    )
