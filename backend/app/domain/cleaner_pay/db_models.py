from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infra.db import Base

if TYPE_CHECKING:  # pragma: no cover
    from app.domain.bookings.db_models import Booking
    from app.domain.cleaners.db_models import Cleaner

ASSIGNMENT_STATUS_ASSIGNED = "assigned"


class CleanerPayment(Base):
    __tablename__ = "cleaner_payments"
    __table_args__ = (
        Index("ix_cleaner_payments_booking_primary", "booking_id", "is_primary"),
        Index("ix_cleaner_payments_cleaner_id", "cleaner_id"),
    )

    payment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False
    )
    cleaner_id: Mapped[int] = mapped_column(ForeignKey("cleaners.cleaner_id"), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_type: Mapped[str] = mapped_column(String(16), nullable=False)
    hourly_rate: Mapped[float | None] = mapped_column(Float)
    percentage_rate: Mapped[float | None] = mapped_column(Float)
    fixed_amount: Mapped[float | None] = mapped_column(Float)
    hours_assigned: Mapped[float | None] = mapped_column(Float)
    calculated_pay: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    pay_overridden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ASSIGNMENT_STATUS_ASSIGNED)
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

    booking: Mapped["Booking"] = relationship("Booking", back_populates="cleaner_payments")
    cleaner: Mapped["Cleaner"] = relationship("Cleaner", back_populates="payments")
