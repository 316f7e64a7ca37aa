from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint

from program_tracker.db.database import Base, UTCDateTime, utcnow


class DaySubstitution(Base):
    """Exercise swap for one absolute program day number.

    Not scoped to a program or enrollment: every enrollment sitting on the
    same day number sees the same override.
    """

    __tablename__ = "day_substitutions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_day = Column(Integer, nullable=False, index=True)
    original_exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    substitute_exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("program_day", "original_exercise_id", name="uq_day_substitution_original"),
    )
