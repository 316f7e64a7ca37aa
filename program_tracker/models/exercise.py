"""Exercise catalog and per-exercise progression state (read by the engine)."""
from sqlalchemy import Column, Float, ForeignKey, Integer, String, UniqueConstraint

from program_tracker.db.database import Base, UTCDateTime, utcnow


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    primary_muscle = Column(String(100), nullable=False, index=True)
    equipment = Column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Exercise(id={self.id}, name={self.name!r})>"


class UserProgression(Base):
    """Current working weight for one user on one exercise."""

    __tablename__ = "user_progressions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    current_weight = Column(Float, nullable=False)
    last_rpe = Column(Float, nullable=True)
    session_count = Column(Integer, nullable=False, default=0)
    last_update = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "exercise_id", name="uq_user_progression_exercise"),
    )
