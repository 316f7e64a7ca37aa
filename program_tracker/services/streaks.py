"""Streak and completion-rate derivation from completion history."""
from datetime import date, timedelta
from typing import Iterable

from program_tracker.core.clock import Clock
from program_tracker.core.logging import get_logger
from program_tracker.models import CompletionStatus, CumulativeStats, ProgramDayCompletion

logger = get_logger(__name__)

ONE_DAY = timedelta(days=1)


def current_streak(completions: Iterable[ProgramDayCompletion], clock: Clock) -> int:
    """Consecutive local calendar days with a completed record, newest first.

    A skipped record ends the walk, so a skip right after a run resets the
    streak to zero. Partial and substituted records neither count nor break;
    a calendar day without a completed record still breaks through the gap
    check.
    """
    ordered = sorted(completions, key=lambda c: c.completion_date, reverse=True)
    streak = 0
    last_date: date | None = None
    for completion in ordered:
        if completion.status == CompletionStatus.SKIPPED:
            break
        if completion.status != CompletionStatus.COMPLETED:
            continue
        completed_on = clock.local_date(completion.completion_date)
        if last_date is None:
            streak = 1
        elif completed_on == last_date:
            continue
        elif completed_on == last_date - ONE_DAY:
            streak += 1
        else:
            break
        last_date = completed_on
    return streak


def longest_streak(completions: Iterable[ProgramDayCompletion], clock: Clock) -> int:
    """Best run of consecutive completed days anywhere in the history."""
    ordered = sorted(completions, key=lambda c: c.completion_date)
    best = 0
    run = 0
    last_date: date | None = None
    for completion in ordered:
        if completion.status == CompletionStatus.SKIPPED:
            run = 0
            last_date = None
            continue
        if completion.status != CompletionStatus.COMPLETED:
            continue
        completed_on = clock.local_date(completion.completion_date)
        if last_date is not None and completed_on == last_date:
            continue
        if last_date is not None and completed_on == last_date + ONE_DAY:
            run += 1
        else:
            run = 1
        last_date = completed_on
        best = max(best, run)
    return best


def completion_rate(completions: Iterable[ProgramDayCompletion]) -> float | None:
    """Completed records as a percentage of all records; None for an empty history."""
    records = list(completions)
    if not records:
        return None
    completed = sum(1 for c in records if c.status == CompletionStatus.COMPLETED)
    return completed / len(records) * 100


class StreakTracker:
    """Keeps the persisted streak fields of CumulativeStats in step with history."""

    def __init__(self, clock: Clock):
        self._clock = clock

    def refresh(
        self,
        stats: CumulativeStats,
        completions: Iterable[ProgramDayCompletion],
    ) -> int:
        streak = current_streak(completions, self._clock)
        stats.current_streak = streak
        if streak > (stats.longest_streak or 0):
            logger.info(
                "longest_streak_raised",
                user_id=stats.user_id,
                previous=stats.longest_streak,
                current=streak,
            )
            stats.longest_streak = streak
        stats.last_updated = self._clock.now()
        return streak
