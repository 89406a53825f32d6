from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UTCDateTime


class EventDefinitionModel(Base):
    __tablename__ = 'event_definition'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    promoter_ids: Mapped[list] = mapped_column(JSON, nullable=False)
    dates: Mapped[list] = mapped_column(JSON, nullable=False)
    locations: Mapped[list] = mapped_column(JSON, nullable=False)
    ticket_types: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
