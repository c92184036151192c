# backend/myjantes/schemas/booking.py
import datetime as dt
from typing import Optional
from zoneinfo import ZoneInfo
from pydantic import Field, field_validator, model_validator
from ..config import settings
from ..models.booking import BookingStatus
from .common import CamelModel

# -----------------------------
# SLOT (config capacità)
# -----------------------------


class TimeSlotConfigIn(CamelModel):
    date: dt.date
    time_slot: str
    max_capacity: int = Field(ge=0)
    is_active: bool = True
    reason: Optional[str] = None


class TimeSlotConfigUpdate(CamelModel):
    """PUT: sovrascrive tutti e tre i campi."""
    max_capacity: int = Field(ge=0)
    is_active: bool = True
    reason: Optional[str] = None


class TimeSlotConfigOut(CamelModel):
    id: int
    date: dt.date
    time_slot: str
    max_capacity: int
    is_active: bool
    reason: Optional[str] = None
    updated_at: Optional[dt.datetime] = None


class SlotAvailabilityOut(CamelModel):
    time_slot: str
    admitted: bool
    reason: Optional[str] = None
    booked: int = 0
    capacity: Optional[int] = None


# -----------------------------
# BOOKING (prenotazioni)
# -----------------------------


class BookingIn(CamelModel):
    """
    Slot fisso (date + timeSlot) oppure intervallo libero
    (startDateTime + endDateTime), mai entrambi.
    """
    service_id: int
    date: Optional[dt.date] = None
    time_slot: Optional[str] = None
    start_date_time: Optional[dt.datetime] = None
    end_date_time: Optional[dt.datetime] = None
    vehicle_brand: str = Field(min_length=1)
    vehicle_plate: str = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("start_date_time", "end_date_time")
    @classmethod
    def _shop_local(cls, v: Optional[dt.datetime]) -> Optional[dt.datetime]:
        # le colonne sono naive in ora locale del negozio: gli offset vengono convertiti
        if v is not None and v.tzinfo is not None:
            return v.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def _one_time_mode(self):
        fixed = self.date is not None or self.time_slot is not None
        ranged = self.start_date_time is not None or self.end_date_time is not None
        if fixed == ranged:
            raise ValueError("Indiquez soit date + timeSlot, soit startDateTime + endDateTime")
        if fixed and (self.date is None or not self.time_slot):
            raise ValueError("date et timeSlot sont requis ensemble")
        if ranged:
            if self.start_date_time is None or self.end_date_time is None:
                raise ValueError("startDateTime et endDateTime sont requis ensemble")
            if self.end_date_time <= self.start_date_time:
                raise ValueError("La fin doit être après le début")
        return self


class BookingOut(CamelModel):
    id: int
    user_id: int
    service_id: int
    date: Optional[dt.date] = None
    time_slot: Optional[str] = None
    start_at: Optional[dt.datetime] = None
    end_at: Optional[dt.datetime] = None
    vehicle_brand: str
    vehicle_plate: str
    notes: Optional[str] = None
    status: BookingStatus
    assigned_employee_id: Optional[int] = None
    assignment_notes: Optional[str] = None
    google_calendar_event_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class BookingStatusIn(CamelModel):
    status: BookingStatus


class AssignEmployeeIn(CamelModel):
    booking_id: int
    employee_id: int
    notes: Optional[str] = None


class CalendarDataOut(CamelModel):
    bookings: list[BookingOut]
    configs: list[TimeSlotConfigOut]
    grid: dict = Field(default_factory=dict)
