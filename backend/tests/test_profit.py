import asyncio
from datetime import date, datetime, timezone

import pytest

from app.domain.bookings.db_models import BOOKING_STATUS_ACTIVE, BOOKING_STATUS_COMPLETED, Booking
from app.domain.cleaner_pay.db_models import CleanerPayment
from app.domain.cleaners.db_models import Cleaner
from app.domain.profit.service import round_money, summarize_profit


async def _seed_ledger(async_session_maker) -> None:
    async with async_session_maker() as session:
        cleaner = Cleaner(full_name="Ledger Cleaner")
        session.add(cleaner)
        await session.flush()

        january = Booking(
            status=BOOKING_STATUS_COMPLETED,
            date_time=datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
            total_cost=300.0,
            cleaner_pay=120.0,
        )
        february = Booking(
            status=BOOKING_STATUS_COMPLETED,
            date_time=datetime(2026, 2, 3, 9, 0, tzinfo=timezone.utc),
            total_cost=150.0,
            cleaner_pay=60.0,
        )
        pending = Booking(
            status=BOOKING_STATUS_ACTIVE,
            date_time=datetime(2026, 1, 20, 9, 0, tzinfo=timezone.utc),
            total_cost=999.0,
            cleaner_pay=1.0,
        )
        session.add_all([january, february, pending])
        await session.flush()
        session.add(
            CleanerPayment(
                booking_id=january.booking_id,
                cleaner_id=cleaner.cleaner_id,
                is_primary=False,
                payment_type="fixed",
                fixed_amount=30.0,
                calculated_pay=30.0,
            )
        )
        await session.commit()


def test_round_money_rounds_half_up():
    assert round_money(2.675) == 2.68
    assert round_money(1.005) == 1.01
    assert round_money(-0.125) == -0.13


@pytest.mark.anyio
async def test_profit_counts_completed_bookings_and_additional_pay(async_session_maker):
    await _seed_ledger(async_session_maker)

    async with async_session_maker() as session:
        summary = await summarize_profit(session)

    assert summary.total_bookings == 2
    assert summary.total_revenue == 450.0
    assert summary.total_cleaner_pay == 210.0
    assert summary.total_profit == 240.0
    assert summary.profit_margin == 53.33
    assert summary.average_booking_value == 225.0


@pytest.mark.anyio
async def test_profit_date_range_is_inclusive(async_session_maker):
    await _seed_ledger(async_session_maker)

    async with async_session_maker() as session:
        summary = await summarize_profit(session, date(2026, 1, 1), date(2026, 1, 10))

    assert summary.total_bookings == 1
    assert summary.total_cleaner_pay == 150.0


@pytest.mark.anyio
async def test_profit_without_revenue_has_zero_margin(async_session_maker):
    async with async_session_maker() as session:
        summary = await summarize_profit(session)

    assert summary.total_bookings == 0
    assert summary.profit_margin == 0
    assert summary.average_booking_value == 0


def test_profit_api(client, async_session_maker):
    asyncio.run(_seed_ledger(async_session_maker))

    response = client.get("/v1/admin/profit", params={"from_date": "2026-02-01", "to_date": "2026-02-28"})
    assert response.status_code == 200
    assert response.json()["total_profit"] == 90.0

    invalid = client.get("/v1/admin/profit", params={"from_date": "2026-03-01", "to_date": "2026-02-01"})
    assert invalid.status_code == 400
