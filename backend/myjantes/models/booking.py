from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey, Text, Index, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base
from ..errors import InvalidStatusTransition
from ..slots.keys import FixedSlot, DateTimeRange


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# completed / cancelled sono terminali
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def check_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[BookingStatus(current)]:
        raise InvalidStatusTransition(current, target)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # slot fisso (date + time_slot) oppure intervallo libero (start_at/end_at)
    date = Column(Date, nullable=True)
    time_slot = Column(String(16), nullable=True)
    start_at = Column(DateTime, nullable=True)
    end_at = Column(DateTime, nullable=True)

    vehicle_brand = Column(String, nullable=False)
    vehicle_plate = Column(String, nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    assigned_employee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assignment_notes = Column(Text, nullable=True)
    google_calendar_event_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", foreign_keys=[user_id])
    assigned_employee = relationship("User", foreign_keys=[assigned_employee_id])
    service = relationship("Service")

    __table_args__ = (Index("ix_bookings_slot", "date", "time_slot"),)

    @property
    def booking_time(self) -> FixedSlot | DateTimeRange | None:
        if self.date is not None and self.time_slot:
            return FixedSlot(self.date, self.time_slot)
        if self.start_at is not None and self.end_at is not None:
            return DateTimeRange(self.start_at, self.end_at)
        return None
