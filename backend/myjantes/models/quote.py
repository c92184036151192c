from sqlalchemy import Column, Integer, String, Text, Numeric, Enum, ForeignKey, JSON, DateTime, func
import enum
from ..database import Base


class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"   # prezzato dall'admin, in attesa del cliente
    REJECTED = "rejected"
    ACCEPTED = "accepted"   # accettato dal cliente -> fattura
    CONVERTED = "converted"  # fatturato dall'admin senza passare dal cliente


# devis già trasformati in fattura
INVOICED = frozenset({QuoteStatus.ACCEPTED, QuoteStatus.CONVERTED})


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)

    vehicle_brand = Column(String, nullable=False)
    vehicle_model = Column(String, nullable=False)
    vehicle_year = Column(String, nullable=False)
    vehicle_engine = Column(String, nullable=True)
    description = Column(Text, nullable=False)
    photos = Column(JSON, default=list)

    amount = Column(Numeric(10, 2), nullable=True)
    status = Column(Enum(QuoteStatus), nullable=False, default=QuoteStatus.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
