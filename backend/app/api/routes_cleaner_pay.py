from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.cleaner_pay import schemas, service
from app.infra.db import get_db_session

router = APIRouter(tags=["cleaner-pay"])


def _mutation_response(outcome: service.RosterOutcome) -> schemas.RosterMutationResponse:
    assignment = (
        schemas.CleanerPaymentResponse.model_validate(outcome.assignment)
        if outcome.assignment is not None
        else None
    )
    return schemas.RosterMutationResponse(assignment=assignment, reconciliation=outcome.reconciliation)


@router.get("/v1/bookings/{booking_id}/cleaners", response_model=list[schemas.CleanerPaymentResponse])
async def list_booking_cleaners(
    booking_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> list[schemas.CleanerPaymentResponse]:
    assignments = await service.fetch_booking_cleaners(session, booking_id)
    return [schemas.CleanerPaymentResponse.model_validate(row) for row in assignments]


@router.post(
    "/v1/bookings/{booking_id}/cleaners",
    response_model=schemas.RosterMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_booking_cleaner(
    booking_id: int,
    payload: schemas.AddCleanerRequest,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.RosterMutationResponse:
    outcome = await service.add_booking_cleaner(session, booking_id, payload)
    return _mutation_response(outcome)


@router.put("/v1/bookings/{booking_id}/cleaners/primary", response_model=schemas.RosterMutationResponse)
async def set_primary_cleaner(
    booking_id: int,
    payload: schemas.UpsertPrimaryRequest,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.RosterMutationResponse:
    outcome = await service.upsert_primary_cleaner(session, booking_id, payload)
    return _mutation_response(outcome)


@router.post("/v1/bookings/{booking_id}/cleaners/reconcile", response_model=schemas.RosterMutationResponse)
async def reconcile_booking_roster(
    booking_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.RosterMutationResponse:
    outcome = await service.reconcile_roster(session, booking_id)
    return _mutation_response(outcome)


@router.patch(
    "/v1/bookings/{booking_id}/cleaners/{payment_id}",
    response_model=schemas.RosterMutationResponse,
)
async def update_booking_cleaner(
    booking_id: int,
    payment_id: int,
    payload: schemas.UpdateCleanerRequest,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.RosterMutationResponse:
    outcome = await service.update_booking_cleaner(session, booking_id, payment_id, payload)
    return _mutation_response(outcome)


@router.delete(
    "/v1/bookings/{booking_id}/cleaners/{payment_id}",
    response_model=schemas.RosterMutationResponse,
)
async def remove_booking_cleaner(
    booking_id: int,
    payment_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.RosterMutationResponse:
    outcome = await service.remove_booking_cleaner(session, booking_id, payment_id)
    return _mutation_response(outcome)


@router.post(
    "/v1/bookings/{booking_id}/cleaners/{payment_id}/override",
    response_model=schemas.CleanerPaymentResponse,
)
async def override_cleaner_pay(
    booking_id: int,
    payment_id: int,
    payload: schemas.PayOverrideRequest,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.CleanerPaymentResponse:
    assignment = await service.override_cleaner_pay(session, booking_id, payment_id, payload.amount)
    return schemas.CleanerPaymentResponse.model_validate(assignment)


@router.get("/v1/cleaners/{cleaner_id}/bookings", response_model=schemas.CleanerBookingsResponse)
async def list_cleaner_bookings(
    cleaner_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.CleanerBookingsResponse:
    return await service.fetch_cleaner_bookings(session, cleaner_id)
