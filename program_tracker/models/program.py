"""Program templates: programs, their days and each day's exercises."""
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from program_tracker.db.database import Base, UTCDateTime, utcnow
from program_tracker.models.enums import DayType, ExperienceLevel, ProgramGoal, enum_column


class Program(Base):
    """A time-bound training plan users can enroll in.

    Created by seeding, import or a user (custom programs) and never mutated
    by the progression engine.
    """

    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    goal = Column(enum_column(ProgramGoal, "program_goal"), nullable=False)
    experience_level = Column(enum_column(ExperienceLevel, "experience_level"), nullable=False)
    duration_weeks = Column(Integer, nullable=False)
    workouts_per_week = Column(Integer, nullable=False)
    equipment_required = Column(JSON, nullable=False, default=list)
    is_custom = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, nullable=True, index=True)  # user id, custom programs only
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("duration_weeks > 0", name="ck_program_duration_positive"),
        CheckConstraint("workouts_per_week BETWEEN 1 AND 7", name="ck_program_workouts_per_week"),
    )

    def __repr__(self) -> str:
        return f"<Program(id={self.id}, name={self.name!r})>"


class ProgramDay(Base):
    """One scheduled day within a program."""

    __tablename__ = "program_days"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_id = Column(
        Integer,
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_number = Column(Integer, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    day_type = Column(enum_column(DayType, "day_type"), nullable=False)
    routine_id = Column(Integer, nullable=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("program_id", "day_number", name="uq_program_day_number"),
        CheckConstraint("day_number >= 1", name="ck_program_day_number_positive"),
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_program_day_of_week"),
    )

    @property
    def week_number(self) -> int:
        return (self.day_number + 6) // 7

    def __repr__(self) -> str:
        return f"<ProgramDay(program_id={self.program_id}, day_number={self.day_number}, type={self.day_type})>"


class ProgramDayExercise(Base):
    """An exercise prescribed on a workout day, in display order."""

    __tablename__ = "program_day_exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_day_id = Column(
        Integer,
        ForeignKey("program_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)
    sets = Column(Integer, nullable=False, default=3)
    reps = Column(String(50), nullable=False, default="8-12")  # "8-12", "AMRAP", "30 seconds"
    rest_seconds = Column(Integer, nullable=False, default=90)
    target_rpe = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("program_day_id", "order_index", name="uq_program_day_exercise_order"),
    )
