from datetime import datetime
from typing import Optional

from sqlalchemy import Float, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UTCDateTime


class TicketModel(Base):
    __tablename__ = 'ticket'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    event_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    reservation_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    promoter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ticket_type: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='active', nullable=False)
    price_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    description: Mapped[str] = mapped_column(String, default='', nullable=False)
    event_date_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    purchased_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    scan_start_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    scan_expiry_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    location_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entrance_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    entrance_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
