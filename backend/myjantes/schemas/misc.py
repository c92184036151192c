import datetime as dt
from decimal import Decimal
from typing import Optional
from pydantic import Field
from ..models.work_progress import WorkStage
from .common import CamelModel


class ServiceOut(CamelModel):
    id: int
    name: str
    description: str
    base_price: Decimal
    image: Optional[str] = None
    active: Optional[bool] = None


class NotificationOut(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    related_id: Optional[int] = None
    read: bool
    created_at: Optional[dt.datetime] = None


class WorkProgressIn(CamelModel):
    booking_id: int
    status: WorkStage
    description: str = Field(min_length=1)
    photos: list[str] = Field(default_factory=list)
    estimated_completion: Optional[dt.datetime] = None


class WorkProgressOut(CamelModel):
    id: int
    booking_id: int
    user_id: int
    status: WorkStage
    description: str
    photos: Optional[list[str]] = None
    estimated_completion: Optional[dt.datetime] = None
    updated_by: int
    created_at: Optional[dt.datetime] = None


class SyncBookingIn(CamelModel):
    booking_id: int
