"""Enrollment lifecycle, per-day completion records and cumulative stats."""
from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)

from program_tracker.db.database import Base, UTCDateTime, utcnow
from program_tracker.models.enums import CompletionStatus, EnrollmentStatus, enum_column

# At most one enrolled/active enrollment per user
_OPEN_ENROLLMENT_PREDICATE = text("status IN ('enrolled', 'active')")


class UserProgramEnrollment(Base):
    """A user's relationship to one program, current or historical."""

    __tablename__ = "user_program_enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    program_id = Column(
        Integer,
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrolled_at = Column(UTCDateTime, nullable=False, default=utcnow)
    started_at = Column(UTCDateTime, nullable=True)  # set on first day-start
    current_day = Column(Integer, nullable=False, default=0)  # 0 = not started
    status = Column(
        enum_column(EnrollmentStatus, "enrollment_status"),
        nullable=False,
        default=EnrollmentStatus.ENROLLED,
        index=True,
    )
    total_days_completed = Column(Integer, nullable=False, default=0)
    total_days_skipped = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(UTCDateTime, nullable=True)
    estimated_completion_date = Column(UTCDateTime, nullable=True)
    actual_completion_date = Column(UTCDateTime, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("current_day >= 0", name="ck_enrollment_current_day"),
        Index(
            "uq_enrollment_open_per_user",
            "user_id",
            unique=True,
            sqlite_where=_OPEN_ENROLLMENT_PREDICATE,
            postgresql_where=_OPEN_ENROLLMENT_PREDICATE,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<UserProgramEnrollment(id={self.id}, user_id={self.user_id}, "
            f"program_id={self.program_id}, day={self.current_day}, status={self.status})>"
        )


class ProgramDayCompletion(Base):
    """Outcome of one program day for one enrollment.

    Keyed by (enrollment_id, program_day_number); writing the same key again
    replaces the previous outcome.
    """

    __tablename__ = "program_day_completions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(
        Integer,
        ForeignKey("user_program_enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    program_day_id = Column(
        Integer,
        ForeignKey("program_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    program_day_number = Column(Integer, nullable=False)
    completion_date = Column(UTCDateTime, nullable=False)
    status = Column(enum_column(CompletionStatus, "completion_status"), nullable=False)
    workout_session_id = Column(Integer, nullable=True)
    skipped_reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("enrollment_id", "program_day_number", name="uq_completion_enrollment_day"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProgramDayCompletion(enrollment_id={self.enrollment_id}, "
            f"day={self.program_day_number}, status={self.status})>"
        )


class CumulativeStats(Base):
    """Per-user running totals, including the persisted longest streak."""

    __tablename__ = "cumulative_stats"

    user_id = Column(Integer, primary_key=True, autoincrement=False)
    total_workout_days = Column(Integer, nullable=False, default=0)
    total_programs_completed = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_updated = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
