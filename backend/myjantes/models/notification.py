from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime, func
from ..database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(32), nullable=False)  # booking | quote | invoice | work_progress
    related_id = Column(Integer, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


def notify(db, *, user_id: int, title: str, message: str, type: str, related_id: int | None = None) -> Notification:
    n = Notification(user_id=user_id, title=title, message=message, type=type, related_id=related_id, read=False)
    db.add(n)
    db.commit()
    return n
