from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UTCDateTime


class ReservationModel(Base):
    __tablename__ = 'reservation'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # First line, kept as columns for lookups by ticket type
    ticket_type_id: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    lines: Mapped[list] = mapped_column(JSON, nullable=False)
    reservation_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expiration_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='pending', nullable=False)
    notification_status: Mapped[str] = mapped_column(
        String(20), default='pending', nullable=False
    )
    source_waitlist_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    expired_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    request_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, unique=True)
