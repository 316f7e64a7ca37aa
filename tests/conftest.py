"""Shared fixtures: an in-memory database per test, a frozen clock and seeded programs."""
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from program_tracker.core.clock import FrozenClock
from program_tracker.core.transactions import KeyedLocks
from program_tracker.db.database import Base, create_session_maker
from program_tracker.models import (
    DayType,
    Exercise,
    ExperienceLevel,
    Program,
    ProgramDay,
    ProgramDayExercise,
    ProgramGoal,
)

# Monday 10:00 UTC
START = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)

WEEK_PATTERN = [
    DayType.WORKOUT,
    DayType.REST,
    DayType.WORKOUT,
    DayType.REST,
    DayType.WORKOUT,
    DayType.ACTIVE_RECOVERY,
    DayType.REST,
]

EXERCISES = [
    ("Barbell Back Squat", "quadriceps", "barbell"),
    ("Goblet Squat", "quadriceps", "dumbbell"),
    ("Leg Press", "quadriceps", "machine"),
    ("Barbell Bench Press", "chest", "barbell"),
    ("Dumbbell Bench Press", "chest", "dumbbell"),
    ("Barbell Row", "lats", "barbell"),
]


@dataclass
class SeededProgram:
    """Plain ids of a seeded program, safe to use after a rolled back transaction."""

    id: int
    total_days: int
    day_ids: dict[int, int] = field(default_factory=dict)
    day_types: dict[int, DayType] = field(default_factory=dict)


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def async_db_session(db_engine) -> AsyncSession:
    async with create_session_maker(db_engine)() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()


@pytest_asyncio.fixture
async def exercises(async_db_session: AsyncSession) -> dict[str, int]:
    """Exercise catalog; name -> id."""
    rows = [
        Exercise(name=name, primary_muscle=muscle, equipment=equipment)
        for name, muscle, equipment in EXERCISES
    ]
    async_db_session.add_all(rows)
    await async_db_session.commit()
    return {row.name: row.id for row in rows}


@pytest_asyncio.fixture
async def program_factory(async_db_session: AsyncSession, exercises: dict[str, int]):
    """Build a program from a list of day types.

    Workout and deload days prescribe squat then bench press.
    """

    async def _create(day_types: list[DayType], name: str = "Test Program", goal=ProgramGoal.STRENGTH):
        program = Program(
            name=name,
            description="",
            goal=goal,
            experience_level=ExperienceLevel.BEGINNER,
            duration_weeks=max(1, (len(day_types) + 6) // 7),
            workouts_per_week=3,
            equipment_required=["barbell"],
            is_custom=False,
            created_at=START,
        )
        async_db_session.add(program)
        await async_db_session.flush()

        seeded = SeededProgram(id=program.id, total_days=len(day_types))
        for number, day_type in enumerate(day_types, start=1):
            day = ProgramDay(
                program_id=program.id,
                day_number=number,
                day_of_week=(number - 1) % 7 + 1,
                day_type=day_type,
                name=f"Day {number}",
            )
            async_db_session.add(day)
            await async_db_session.flush()
            seeded.day_ids[number] = day.id
            seeded.day_types[number] = day_type
            if day_type in (DayType.WORKOUT, DayType.DELOAD):
                async_db_session.add_all([
                    ProgramDayExercise(
                        program_day_id=day.id,
                        exercise_id=exercises["Barbell Back Squat"],
                        order_index=0,
                        sets=3,
                        reps="5",
                        rest_seconds=180,
                        target_rpe=8,
                    ),
                    ProgramDayExercise(
                        program_day_id=day.id,
                        exercise_id=exercises["Barbell Bench Press"],
                        order_index=1,
                        sets=3,
                        reps="8-12",
                        rest_seconds=120,
                    ),
                ])
        await async_db_session.commit()
        return seeded

    return _create


@pytest_asyncio.fixture
async def weekly_program(program_factory) -> SeededProgram:
    """Two weeks of workout/rest/workout/rest/workout/recovery/rest."""
    return await program_factory(WEEK_PATTERN * 2, name="Two Week Primer")


@pytest.fixture
def fetch_all(async_db_session: AsyncSession):
    """Run a query outside any service and close the implicit transaction."""

    async def _fetch(statement) -> list:
        result = await async_db_session.execute(statement)
        rows = list(result.scalars().all())
        await async_db_session.commit()
        return rows

    return _fetch
