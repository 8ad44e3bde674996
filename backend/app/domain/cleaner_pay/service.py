"""Cleaner roster mutations and primary pay reconciliation.

Every mutation runs as one transaction: the booking row is locked, the roster
change is applied, the primary cleaner's hours and pay are re-derived from the
persisted additional assignments, and the result is committed together. The
primary cleaner's hours and pay are only written by :func:`_reconcile_primary`.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Union

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.bookings.db_models import Booking
from app.domain.cleaner_pay.db_models import ASSIGNMENT_STATUS_ASSIGNED, CleanerPayment
from app.domain.cleaner_pay.pay import (
    PaymentType,
    PrimaryRateConfig,
    calculate_cleaner_pay,
    calculate_primary_pay,
    primary_cleaner_hours,
)
from app.domain.cleaner_pay.schemas import (
    RATE_FIELD_BY_TYPE,
    AddCleanerRequest,
    AdditionalAssignmentSummary,
    CleanerBookingsResponse,
    RosterReconciliation,
    UpdateCleanerRequest,
    UpsertPrimaryRequest,
)
from app.domain.cleaners.db_models import Cleaner
from app.domain.errors import (
    BookingNotFoundError,
    CleanerNotFoundError,
    CleanerPaymentNotFoundError,
    DomainError,
    MissingRateError,
    PersistenceError,
    RosterHoursExceededError,
)
from app.settings import settings

logger = logging.getLogger(__name__)

_HOURS_TOLERANCE = 1e-9


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


_ROSTER_LOCKS: dict[int, _LockEntry] = {}


@asynccontextmanager
async def booking_roster_lock(booking_id: int) -> AsyncIterator[None]:
    """Serialize roster mutations for one booking within this process.

    Cross-process writers are serialized by the row lock taken in
    :func:`_lock_booking`.
    """
    entry = _ROSTER_LOCKS.setdefault(booking_id, _LockEntry())
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0:
            _ROSTER_LOCKS.pop(booking_id, None)


@dataclass(frozen=True)
class AddAdditionalCleaner:
    request: AddCleanerRequest


@dataclass(frozen=True)
class UpdateAdditionalCleaner:
    payment_id: int
    request: UpdateCleanerRequest


@dataclass(frozen=True)
class RemoveAdditionalCleaner:
    payment_id: int


@dataclass(frozen=True)
class ReplacePrimaryCleaner:
    request: UpsertPrimaryRequest


RosterDelta = Union[
    AddAdditionalCleaner,
    UpdateAdditionalCleaner,
    RemoveAdditionalCleaner,
    ReplacePrimaryCleaner,
]


@dataclass(frozen=True)
class RosterOutcome:
    assignment: CleanerPayment | None
    reconciliation: RosterReconciliation | None


async def _lock_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    stmt = (
        sa.select(Booking)
        .where(Booking.booking_id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _additional_assignments(session: AsyncSession, booking_id: int) -> list[CleanerPayment]:
    stmt = (
        sa.select(CleanerPayment)
        .where(CleanerPayment.booking_id == booking_id, CleanerPayment.is_primary.is_(False))
        .order_by(CleanerPayment.created_at, CleanerPayment.payment_id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _primary_assignment(session: AsyncSession, booking_id: int) -> CleanerPayment | None:
    stmt = (
        sa.select(CleanerPayment)
        .where(CleanerPayment.booking_id == booking_id, CleanerPayment.is_primary.is_(True))
        .order_by(CleanerPayment.payment_id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _load_assignment(
    session: AsyncSession, booking_id: int, payment_id: int
) -> CleanerPayment:
    assignment = await session.get(CleanerPayment, payment_id)
    if assignment is None or assignment.booking_id != booking_id:
        raise CleanerPaymentNotFoundError(payment_id)
    return assignment


async def _require_cleaner(session: AsyncSession, cleaner_id: int) -> Cleaner:
    cleaner = await session.get(Cleaner, cleaner_id)
    if cleaner is None:
        raise CleanerNotFoundError(cleaner_id)
    return cleaner


def _ensure_hours_fit(
    booking: Booking,
    others: list[CleanerPayment],
    requested_hours: float | None,
) -> None:
    total_hours = booking.effective_total_hours
    requested = sum((row.hours_assigned or 0.0 for row in others), 0.0) + (requested_hours or 0.0)
    if requested > total_hours + _HOURS_TOLERANCE:
        raise RosterHoursExceededError(booking.booking_id, requested, total_hours)


async def _apply_add(
    session: AsyncSession, booking: Booking, delta: AddAdditionalCleaner
) -> CleanerPayment:
    request = delta.request
    await _require_cleaner(session, request.cleaner_id)
    others = await _additional_assignments(session, booking.booking_id)
    _ensure_hours_fit(booking, others, request.hours_assigned)

    columns = request.rate_columns()
    assignment = CleanerPayment(
        booking_id=booking.booking_id,
        cleaner_id=request.cleaner_id,
        is_primary=False,
        hours_assigned=request.hours_assigned or None,
        calculated_pay=calculate_cleaner_pay(
            request.payment_type,
            booking.total_cost,
            hourly_rate=columns["hourly_rate"],
            percentage_rate=columns["percentage_rate"],
            fixed_amount=columns["fixed_amount"],
            hours_assigned=request.hours_assigned,
        ),
        pay_overridden=False,
        status=ASSIGNMENT_STATUS_ASSIGNED,
        **columns,
    )
    session.add(assignment)
    await session.flush()
    logger.info(
        "cleaner_added",
        extra={
            "extra": {
                "booking_id": booking.booking_id,
                "payment_id": assignment.payment_id,
                "cleaner_id": assignment.cleaner_id,
                "payment_type": assignment.payment_type,
            }
        },
    )
    return assignment


def _updated_rate_columns(
    assignment: CleanerPayment, request: UpdateCleanerRequest
) -> dict[str, float | str | None]:
    current_type = _coerce_stored_payment_type(assignment.payment_type)
    payment_type = request.payment_type or current_type
    if payment_type is None:
        raise MissingRateError(assignment.payment_id, str(assignment.payment_type))
    rate_field = RATE_FIELD_BY_TYPE[payment_type]

    if rate_field in request.model_fields_set:
        rate = getattr(request, rate_field)
    elif payment_type is current_type:
        rate = getattr(assignment, rate_field)
    else:
        raise MissingRateError(assignment.payment_id, payment_type.value)

    columns: dict[str, float | str | None] = {name: None for name in RATE_FIELD_BY_TYPE.values()}
    columns[rate_field] = rate
    columns["payment_type"] = payment_type.value
    return columns


def _coerce_stored_payment_type(value: str | None) -> PaymentType | None:
    try:
        return PaymentType(value)
    except ValueError:
        return None


async def _apply_update(
    session: AsyncSession, booking: Booking, delta: UpdateAdditionalCleaner
) -> tuple[CleanerPayment, bool]:
    assignment = await _load_assignment(session, booking.booking_id, delta.payment_id)
    if assignment.is_primary:
        raise _primary_not_editable(delta.payment_id)
    request = delta.request
    previous_hours = assignment.hours_assigned or 0.0
    hours = request.hours_assigned if request.hours_assigned is not None else assignment.hours_assigned

    others = [
        row
        for row in await _additional_assignments(session, booking.booking_id)
        if row.payment_id != assignment.payment_id
    ]
    _ensure_hours_fit(booking, others, hours)

    for column, value in _updated_rate_columns(assignment, request).items():
        setattr(assignment, column, value)
    assignment.hours_assigned = hours
    assignment.calculated_pay = calculate_cleaner_pay(
        assignment.payment_type,
        booking.total_cost,
        hourly_rate=assignment.hourly_rate,
        percentage_rate=assignment.percentage_rate,
        fixed_amount=assignment.fixed_amount,
        hours_assigned=assignment.hours_assigned,
    )
    assignment.pay_overridden = False
    await session.flush()
    hours_changed = abs((hours or 0.0) - previous_hours) > _HOURS_TOLERANCE
    return assignment, hours_changed


async def _apply_remove(
    session: AsyncSession, booking: Booking, delta: RemoveAdditionalCleaner
) -> None:
    assignment = await _load_assignment(session, booking.booking_id, delta.payment_id)
    if assignment.is_primary:
        raise _primary_not_editable(delta.payment_id)
    await session.delete(assignment)
    await session.flush()
    logger.info(
        "cleaner_removed",
        extra={"extra": {"booking_id": booking.booking_id, "payment_id": delta.payment_id}},
    )


async def _apply_replace_primary(
    session: AsyncSession, booking: Booking, delta: ReplacePrimaryCleaner
) -> CleanerPayment:
    request = delta.request
    await _require_cleaner(session, request.cleaner_id)
    columns = request.rate_columns()

    booking.cleaner_id = request.cleaner_id
    booking.cleaner_rate = columns["hourly_rate"]
    booking.cleaner_percentage = columns["percentage_rate"]

    primary = await _primary_assignment(session, booking.booking_id)
    if primary is None:
        primary = CleanerPayment(
            booking_id=booking.booking_id,
            is_primary=True,
            status=ASSIGNMENT_STATUS_ASSIGNED,
            calculated_pay=0.0,
        )
        session.add(primary)
    primary.cleaner_id = request.cleaner_id
    for column, value in columns.items():
        setattr(primary, column, value)
    primary.pay_overridden = False
    await session.flush()
    return primary


def _primary_not_editable(payment_id: int) -> DomainError:
    return DomainError(
        detail=f"Assignment {payment_id} is the primary cleaner; replace it through the primary roster slot",
        title="Primary Assignment",
        type="https://example.com/problems/primary-assignment",
        status_code=409,
    )


async def _reconcile_primary(session: AsyncSession, booking: Booking) -> RosterReconciliation | None:
    if booking.cleaner_id is None:
        logger.info(
            "roster_reconcile_skipped",
            extra={"extra": {"booking_id": booking.booking_id, "reason": "no_primary_cleaner"}},
        )
        return None

    additional = await _additional_assignments(session, booking.booking_id)
    total_hours = booking.effective_total_hours
    additional_hours = sum((row.hours_assigned or 0.0 for row in additional), 0.0)
    primary_hours = primary_cleaner_hours(total_hours, (row.hours_assigned for row in additional))

    primary = await _primary_assignment(session, booking.booking_id)
    if primary is not None and primary.pay_overridden:
        primary_pay = primary.calculated_pay
    else:
        fixed_amount = None
        if primary is not None and primary.payment_type == PaymentType.fixed.value:
            fixed_amount = primary.fixed_amount
        primary_pay = calculate_primary_pay(
            PrimaryRateConfig(
                hourly_rate=booking.cleaner_rate,
                percentage_rate=booking.cleaner_percentage,
                fixed_amount=fixed_amount,
            ),
            total_cost=booking.total_cost,
            total_hours=total_hours,
            primary_hours=primary_hours,
            default_hourly_rate=settings.default_cleaner_hourly_rate,
        )

    booking.cleaner_pay = primary_pay
    if primary is not None:
        primary.hours_assigned = primary_hours
        primary.calculated_pay = primary_pay
    await session.flush()

    logger.info(
        "roster_reconciled",
        extra={
            "extra": {
                "booking_id": booking.booking_id,
                "total_hours": total_hours,
                "additional_hours": additional_hours,
                "primary_hours": primary_hours,
                "primary_pay": primary_pay,
                "pay_overridden": bool(primary is not None and primary.pay_overridden),
            }
        },
    )
    return RosterReconciliation(
        booking_id=booking.booking_id,
        total_hours=total_hours,
        additional_hours=additional_hours,
        primary_hours=primary_hours,
        primary_pay=primary_pay,
    )


async def reconcile_roster(
    session: AsyncSession, booking_id: int, delta: RosterDelta | None = None
) -> RosterOutcome:
    """Apply ``delta`` (if any) and re-derive the primary cleaner's hours and pay.

    With no delta a missing booking is a logged no-op; a delta against a
    missing booking raises :class:`BookingNotFoundError`. Storage failures roll
    the whole mutation back and surface as :class:`PersistenceError`.
    """
    async with booking_roster_lock(booking_id):
        try:
            booking = await _lock_booking(session, booking_id)
            if booking is None:
                if delta is not None:
                    raise BookingNotFoundError(booking_id)
                logger.info(
                    "roster_reconcile_skipped",
                    extra={"extra": {"booking_id": booking_id, "reason": "booking_not_found"}},
                )
                await session.rollback()
                return RosterOutcome(assignment=None, reconciliation=None)

            assignment: CleanerPayment | None = None
            hours_changed = True
            if isinstance(delta, AddAdditionalCleaner):
                assignment = await _apply_add(session, booking, delta)
            elif isinstance(delta, UpdateAdditionalCleaner):
                assignment, hours_changed = await _apply_update(session, booking, delta)
            elif isinstance(delta, RemoveAdditionalCleaner):
                await _apply_remove(session, booking, delta)
            elif isinstance(delta, ReplacePrimaryCleaner):
                assignment = await _apply_replace_primary(session, booking, delta)

            reconciliation = await _reconcile_primary(session, booking) if hours_changed else None
            if assignment is not None:
                await session.refresh(assignment)
            await session.commit()
        except DomainError:
            await session.rollback()
            raise
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error(
                "roster_persist_failed",
                extra={"extra": {"booking_id": booking_id, "delta": type(delta).__name__ if delta else None}},
                exc_info=exc,
            )
            raise PersistenceError(f"Could not save roster changes for booking {booking_id}") from exc

    return RosterOutcome(assignment=assignment, reconciliation=reconciliation)


async def add_booking_cleaner(
    session: AsyncSession, booking_id: int, request: AddCleanerRequest
) -> RosterOutcome:
    return await reconcile_roster(session, booking_id, AddAdditionalCleaner(request))


async def update_booking_cleaner(
    session: AsyncSession, booking_id: int, payment_id: int, request: UpdateCleanerRequest
) -> RosterOutcome:
    """Edit an additional cleaner; the primary is only re-derived when hours move."""
    return await reconcile_roster(session, booking_id, UpdateAdditionalCleaner(payment_id, request))


async def remove_booking_cleaner(
    session: AsyncSession, booking_id: int, payment_id: int
) -> RosterOutcome:
    return await reconcile_roster(session, booking_id, RemoveAdditionalCleaner(payment_id))


async def upsert_primary_cleaner(
    session: AsyncSession, booking_id: int, request: UpsertPrimaryRequest
) -> RosterOutcome:
    return await reconcile_roster(session, booking_id, ReplacePrimaryCleaner(request))


async def recalculate_primary_cleaner_pay(
    session: AsyncSession, booking_id: int
) -> RosterReconciliation | None:
    outcome = await reconcile_roster(session, booking_id)
    return outcome.reconciliation


async def override_cleaner_pay(
    session: AsyncSession, booking_id: int, payment_id: int, amount: float
) -> CleanerPayment:
    """Pin an assignment's pay; reconciliation keeps it until the rate is edited."""
    async with booking_roster_lock(booking_id):
        try:
            booking = await _lock_booking(session, booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            assignment = await _load_assignment(session, booking_id, payment_id)
            assignment.calculated_pay = amount
            assignment.pay_overridden = True
            if assignment.is_primary:
                booking.cleaner_pay = amount
            await session.flush()
            await session.refresh(assignment)
            await session.commit()
        except DomainError:
            await session.rollback()
            raise
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error(
                "cleaner_pay_override_failed",
                extra={"extra": {"booking_id": booking_id, "payment_id": payment_id}},
                exc_info=exc,
            )
            raise PersistenceError(f"Could not override pay for assignment {payment_id}") from exc

    logger.info(
        "cleaner_pay_overridden",
        extra={
            "extra": {
                "booking_id": booking_id,
                "payment_id": payment_id,
                "is_primary": assignment.is_primary,
                "amount": amount,
            }
        },
    )
    return assignment


async def fetch_booking_cleaners(session: AsyncSession, booking_id: int) -> list[CleanerPayment]:
    booking = await session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    stmt = (
        sa.select(CleanerPayment)
        .where(CleanerPayment.booking_id == booking_id)
        .order_by(
            CleanerPayment.is_primary.desc(),
            CleanerPayment.created_at,
            CleanerPayment.payment_id,
        )
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_additional_cleaners(session: AsyncSession, booking_id: int) -> list[CleanerPayment]:
    return await _additional_assignments(session, booking_id)


async def total_additional_cleaners_pay(session: AsyncSession, booking_id: int) -> float:
    stmt = sa.select(sa.func.coalesce(sa.func.sum(CleanerPayment.calculated_pay), 0.0)).where(
        CleanerPayment.booking_id == booking_id, CleanerPayment.is_primary.is_(False)
    )
    return float(await session.scalar(stmt) or 0.0)


async def total_additional_cleaners_hours(session: AsyncSession, booking_id: int) -> float:
    stmt = sa.select(sa.func.coalesce(sa.func.sum(CleanerPayment.hours_assigned), 0.0)).where(
        CleanerPayment.booking_id == booking_id, CleanerPayment.is_primary.is_(False)
    )
    return float(await session.scalar(stmt) or 0.0)


async def fetch_cleaner_bookings(session: AsyncSession, cleaner_id: int) -> CleanerBookingsResponse:
    primary_stmt = (
        sa.select(Booking.booking_id)
        .where(Booking.cleaner_id == cleaner_id)
        .order_by(Booking.date_time, Booking.booking_id)
    )
    primary_ids = list((await session.execute(primary_stmt)).scalars().all())

    additional_stmt = (
        sa.select(CleanerPayment)
        .where(CleanerPayment.cleaner_id == cleaner_id, CleanerPayment.is_primary.is_(False))
        .order_by(CleanerPayment.booking_id, CleanerPayment.payment_id)
    )
    additional_rows = (await session.execute(additional_stmt)).scalars().all()
    return CleanerBookingsResponse(
        cleaner_id=cleaner_id,
        primary=primary_ids,
        additional=[
            AdditionalAssignmentSummary(
                booking_id=row.booking_id,
                pay=row.calculated_pay,
                hours=row.hours_assigned or 0.0,
            )
            for row in additional_rows
        ],
    )
