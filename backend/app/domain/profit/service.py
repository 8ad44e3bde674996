from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

import sqlalchemy as sa
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.bookings.db_models import BOOKING_STATUS_COMPLETED, Booking
from app.domain.cleaner_pay.db_models import CleanerPayment

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


class ProfitSummary(BaseModel):
    from_date: date | None
    to_date: date | None
    total_bookings: int
    total_revenue: float
    total_cleaner_pay: float
    total_profit: float
    profit_margin: float
    average_booking_value: float


def _range_bounds(from_date: date | None, to_date: date | None) -> tuple[datetime | None, datetime | None]:
    start = datetime.combine(from_date, time.min, tzinfo=timezone.utc) if from_date else None
    end = (
        datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        if to_date
        else None
    )
    return start, end


async def summarize_profit(
    session: AsyncSession,
    from_date: date | None = None,
    to_date: date | None = None,
) -> ProfitSummary:
    """Revenue against cleaner pay for completed bookings dated within ``[from_date, to_date]``."""
    start, end = _range_bounds(from_date, to_date)

    filters = [Booking.status == BOOKING_STATUS_COMPLETED]
    if start is not None:
        filters.append(Booking.date_time >= start)
    if end is not None:
        filters.append(Booking.date_time < end)

    booking_stmt = sa.select(
        sa.func.count(Booking.booking_id),
        sa.func.coalesce(sa.func.sum(Booking.total_cost), 0.0),
        sa.func.coalesce(sa.func.sum(Booking.cleaner_pay), 0.0),
    ).where(*filters)
    count, revenue, primary_pay = (await session.execute(booking_stmt)).one()

    additional_stmt = (
        sa.select(sa.func.coalesce(sa.func.sum(CleanerPayment.calculated_pay), 0.0))
        .join(Booking, Booking.booking_id == CleanerPayment.booking_id)
        .where(CleanerPayment.is_primary.is_(False), *filters)
    )
    additional_pay = await session.scalar(additional_stmt)

    total_bookings = int(count or 0)
    total_revenue = float(revenue or 0.0)
    total_cleaner_pay = float(primary_pay or 0.0) + float(additional_pay or 0.0)
    total_profit = total_revenue - total_cleaner_pay
    profit_margin = (total_profit / total_revenue) * 100 if total_revenue > 0 else 0.0
    average_booking_value = total_revenue / total_bookings if total_bookings else 0.0

    logger.info(
        "profit_summary_computed",
        extra={
            "extra": {
                "from_date": from_date.isoformat() if from_date else None,
                "to_date": to_date.isoformat() if to_date else None,
                "total_bookings": total_bookings,
            }
        },
    )
    return ProfitSummary(
        from_date=from_date,
        to_date=to_date,
        total_bookings=total_bookings,
        total_revenue=round_money(total_revenue),
        total_cleaner_pay=round_money(total_cleaner_pay),
        total_profit=round_money(total_profit),
        profit_margin=round_money(profit_margin),
        average_booking_value=round_money(average_booking_value),
    )
