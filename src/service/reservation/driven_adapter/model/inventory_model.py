from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UTCDateTime


class InventoryModel(Base):
    __tablename__ = 'inventory'

    event_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ticket_type_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reserved_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sold_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    earmarked_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            'available_quantity + reserved_quantity + sold_quantity + earmarked_quantity'
            ' = total_quantity',
            name='ck_inventory_counters_sum',
        ),
        CheckConstraint(
            'available_quantity >= 0 AND reserved_quantity >= 0 '
            'AND sold_quantity >= 0 AND earmarked_quantity >= 0',
            name='ck_inventory_counters_non_negative',
        ),
    )
