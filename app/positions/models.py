# app/positions/models.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, String, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class Position(Base):
    """
    GPS fix reported by MaxTracker for one vehicle at one instant.
    """
    __tablename__ = "positions"

    __table_args__ = (
        UniqueConstraint("plate", "date", name="unique_position"),
        Index("idx_positions_plate_date", "plate", "date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    lat: Mapped[float] = mapped_column(Numeric(10, 8), nullable=False)
    lng: Mapped[float] = mapped_column(Numeric(11, 8), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    speed: Mapped[float] = mapped_column(Numeric(6, 2), default=0)
    direction: Mapped[float] = mapped_column(Numeric(6, 2), default=0)
    event_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    event: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    plate: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    imei: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    odometer: Mapped[int] = mapped_column(Integer, default=0)
    hourmeter: Mapped[int] = mapped_column(Integer, default=0)
    driver_key: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    driver_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    driver_document: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Position(plate='{self.plate}', date={self.date})>"
