from sqlalchemy import Column, Integer, Text, Enum, ForeignKey, JSON, DateTime, func
import enum
from ..database import Base


class WorkStage(str, enum.Enum):
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    QUALITY_CHECK = "quality_check"
    COMPLETED = "completed"
    READY_FOR_PICKUP = "ready_for_pickup"


class WorkProgress(Base):
    __tablename__ = "work_progress"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(WorkStage), nullable=False)
    description = Column(Text, nullable=False)
    photos = Column(JSON, default=list)
    estimated_completion = Column(DateTime, nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
