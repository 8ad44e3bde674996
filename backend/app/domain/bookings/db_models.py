from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infra.db import Base

if TYPE_CHECKING:  # pragma: no cover
    from app.domain.cleaner_pay.db_models import CleanerPayment
    from app.domain.cleaners.db_models import Cleaner

BOOKING_STATUS_ACTIVE = "active"
BOOKING_STATUS_COMPLETED = "completed"
BOOKING_STATUS_CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_status_date_time", "status", "date_time"),
    )

    booking_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_type: Mapped[str] = mapped_column(String(32), nullable=False, default="end_of_tenancy")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=BOOKING_STATUS_ACTIVE)
    date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_hours: Mapped[float | None] = mapped_column(Float)
    cleaning_time: Mapped[float | None] = mapped_column(Float)
    is_first_time_customer: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    cleaner_id: Mapped[int | None] = mapped_column(
        ForeignKey("cleaners.cleaner_id"), nullable=True, index=True
    )
    cleaner_rate: Mapped[float | None] = mapped_column(Float)
    cleaner_percentage: Mapped[float | None] = mapped_column(Float)
    cleaner_pay: Mapped[float | None] = mapped_column(Float)
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

    cleaner: Mapped["Cleaner | None"] = relationship("Cleaner", back_populates="primary_bookings")
    cleaner_payments: Mapped[list["CleanerPayment"]] = relationship(
        "CleanerPayment",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    @property
    def effective_total_hours(self) -> float:
        return float(self.total_hours or self.cleaning_time or 0.0)
