from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infra.db import Base

if TYPE_CHECKING:  # pragma: no cover
    from app.domain.bookings.db_models import Booking
    from app.domain.cleaner_pay.db_models import CleanerPayment


class Cleaner(Base):
    __tablename__ = "cleaners"

    cleaner_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    hourly_rate: Mapped[float | None] = mapped_column(Float)
    percentage_rate: Mapped[float | None] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    primary_bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="cleaner")
    payments: Mapped[list["CleanerPayment"]] = relationship("CleanerPayment", back_populates="cleaner")
