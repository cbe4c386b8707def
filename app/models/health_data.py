"""Health data aggregate model."""
import uuid
from sqlalchemy import Column, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.models.user import utcnow


class HealthData(Base):
    """Per-user document holding cough history plus the latest risk and habits snapshots.

    ``cough_history`` is a JSON list kept newest-first. The JSON columns are not
    mutation-tracked, so writers must assign a new list/dict rather than
    mutating the loaded value in place.
    """

    __tablename__ = "health_data"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    cough_history = Column(JSON, nullable=False, default=list)
    risk_test_data = Column(JSON, nullable=True)
    habits_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="health_data")
