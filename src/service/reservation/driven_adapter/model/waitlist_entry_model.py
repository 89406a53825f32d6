from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UTCDateTime


class WaitlistEntryModel(Base):
    __tablename__ = 'waitlist_entry'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ticket_type_id: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    request_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    notification_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notification_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    expiration_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default='waiting', nullable=False)
    notification_status: Mapped[str] = mapped_column(
        String(20), default='pending', nullable=False
    )
    claimed_reservation_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    request_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, unique=True)

    __table_args__ = (
        # FIFO scan: waiting entries of one partition by request time
        Index(
            'ix_waitlist_partition_queue',
            'event_id',
            'ticket_type_id',
            'status',
            'request_time',
        ),
    )
