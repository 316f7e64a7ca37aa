"""
DayStateResolver - classifies what a program day permits right now.

Pure and deterministic: all inputs are passed in (the enrollment, its
completion records and the ids of days that already have a completed workout
session today) and the only ambient input is the injected clock. Safe to call
concurrently from any number of readers.

Evaluation order, first match wins:
1. no enrollment, or enrollment not active        -> LOCKED
2. after the current day                          -> UPCOMING, whatever the
                                                     completion history says
3. completion record dated inside today's window  -> COMPLETED_TODAY / SKIPPED
4. the enrollment's current day                   -> by day type
5. before the current day                         -> by completion record,
                                                     LOCKED when there is none
"""
from dataclasses import dataclass
from typing import Iterable, Mapping

from program_tracker.core.clock import Clock, DayWindow
from program_tracker.core.logging import get_logger
from program_tracker.models import (
    CompletionStatus,
    DayState,
    DayType,
    EnrollmentStatus,
    ProgramDay,
    ProgramDayCompletion,
    UserProgramEnrollment,
)

logger = get_logger(__name__)

STARTABLE_STATES = frozenset({DayState.AVAILABLE_TODAY, DayState.ACTIVE_RECOVERY_AVAILABLE})
SKIPPABLE_STATES = STARTABLE_STATES | {DayState.REST_DAY_ACTIVE}


@dataclass(frozen=True)
class DayStateDisplay:
    label: str
    tone: str


_DISPLAY = {
    DayState.AVAILABLE_TODAY: DayStateDisplay("Start Today", "primary"),
    DayState.COMPLETED_TODAY: DayStateDisplay("Completed Today", "success"),
    DayState.COMPLETED_PAST: DayStateDisplay("Completed", "success"),
    DayState.SKIPPED: DayStateDisplay("Skipped", "warning"),
    DayState.REST_DAY_ACTIVE: DayStateDisplay("Rest Day", "secondary"),
    DayState.ACTIVE_RECOVERY_AVAILABLE: DayStateDisplay("Active Recovery", "secondary"),
    DayState.UPCOMING: DayStateDisplay("Upcoming", "surface"),
    DayState.LOCKED: DayStateDisplay("Locked", "disabled"),
}


def describe(state: DayState) -> DayStateDisplay:
    return _DISPLAY[state]


def index_completions(
    completions: Iterable[ProgramDayCompletion],
) -> dict[int, ProgramDayCompletion]:
    """Map day number to its completion record."""
    return {completion.program_day_number: completion for completion in completions}


class DayStateResolver:
    def __init__(self, clock: Clock):
        self._clock = clock

    def resolve(
        self,
        day: ProgramDay,
        enrollment: UserProgramEnrollment | None,
        completions: Iterable[ProgramDayCompletion] | Mapping[int, ProgramDayCompletion],
        *,
        completed_session_day_ids: frozenset[int] = frozenset(),
        today: DayWindow | None = None,
    ) -> DayState:
        if enrollment is None or enrollment.status != EnrollmentStatus.ACTIVE:
            return DayState.LOCKED

        by_day = completions if isinstance(completions, Mapping) else index_completions(completions)
        today = today or self._clock.today_window()
        completion = by_day.get(day.day_number)

        if day.day_number > enrollment.current_day:
            return DayState.UPCOMING

        if completion is not None and today.contains(completion.completion_date):
            if completion.status == CompletionStatus.COMPLETED:
                return DayState.COMPLETED_TODAY
            return DayState.SKIPPED

        if day.day_number == enrollment.current_day:
            if day.day_type == DayType.REST:
                return DayState.REST_DAY_ACTIVE
            if day.day_type == DayType.ACTIVE_RECOVERY:
                return DayState.ACTIVE_RECOVERY_AVAILABLE
            if day.day_type == DayType.WORKOUT and day.id in completed_session_day_ids:
                # prevents a second workout on the same day
                return DayState.COMPLETED_TODAY
            return DayState.AVAILABLE_TODAY

        if completion is not None and completion.status == CompletionStatus.COMPLETED:
            return DayState.COMPLETED_PAST
        if completion is not None and completion.status == CompletionStatus.SKIPPED:
            return DayState.SKIPPED

        logger.warning(
            "past_day_without_completion",
            enrollment_id=enrollment.id,
            day_number=day.day_number,
            current_day=enrollment.current_day,
            completion_status=completion.status.value if completion is not None else None,
        )
        return DayState.LOCKED

    def can_start_day(self, day, enrollment, completions, **kwargs) -> bool:
        return self.resolve(day, enrollment, completions, **kwargs) in STARTABLE_STATES

    def can_skip_day(self, day, enrollment, completions, **kwargs) -> bool:
        return self.resolve(day, enrollment, completions, **kwargs) in SKIPPABLE_STATES

    def next_available_day(
        self,
        enrollment: UserProgramEnrollment,
        days: Iterable[ProgramDay],
        completions: Iterable[ProgramDayCompletion],
        *,
        completed_session_day_ids: frozenset[int] = frozenset(),
    ) -> ProgramDay | None:
        """First day at or after the current day that can be started or skipped."""
        by_day = index_completions(completions)
        today = self._clock.today_window()
        candidates = sorted(
            (day for day in days if day.day_number >= enrollment.current_day),
            key=lambda day: day.day_number,
        )
        for day in candidates:
            state = self.resolve(
                day,
                enrollment,
                by_day,
                completed_session_day_ids=completed_session_day_ids,
                today=today,
            )
            if state in SKIPPABLE_STATES:
                return day
        return None
