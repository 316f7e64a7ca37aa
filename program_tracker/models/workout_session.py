from sqlalchemy import Boolean, Column, ForeignKey, Integer

from program_tracker.db.database import Base, UTCDateTime, utcnow


class WorkoutSession(Base):
    """A logged workout. Owned by the workout-logging feature; the engine only reads it."""

    __tablename__ = "workout_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    enrollment_id = Column(
        Integer,
        ForeignKey("user_program_enrollments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    program_day_id = Column(Integer, ForeignKey("program_days.id", ondelete="SET NULL"), nullable=True)
    started_at = Column(UTCDateTime, nullable=False, default=utcnow)
    completed_at = Column(UTCDateTime, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
