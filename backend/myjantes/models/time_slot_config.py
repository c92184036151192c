from sqlalchemy import Column, Integer, String, Date, Boolean, Text, DateTime, UniqueConstraint, CheckConstraint, func
from ..database import Base


class TimeSlotConfig(Base):
    """Override admin della capacità di uno slot. Assenza di riga = policy di default."""

    __tablename__ = "time_slot_configs"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    time_slot = Column(String(16), nullable=False)
    max_capacity = Column(Integer, nullable=False, default=2)
    is_active = Column(Boolean, nullable=False, default=True)
    reason = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("date", "time_slot", name="uniq_time_slot_config"),
        CheckConstraint("max_capacity >= 0", name="ck_time_slot_config_capacity"),
    )
