from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.pricing import schemas, service
from app.domain.pricing.models import RuleCategory, ServiceType
from app.infra.db import get_db_session

router = APIRouter(tags=["admin-pricing-rules"])


@router.get(
    "/v1/admin/pricing-rules",
    response_model=list[schemas.PricingRuleResponse],
    status_code=status.HTTP_200_OK,
)
async def list_pricing_rules(
    service_type: ServiceType = Query(ServiceType.end_of_tenancy),
    category: RuleCategory | None = Query(None),
    only_visible: bool = Query(False),
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_db_session),
) -> list[schemas.PricingRuleResponse]:
    rules = await service.list_rules(
        session,
        service_type,
        category=category,
        only_visible=only_visible,
        include_inactive=include_inactive,
    )
    return [schemas.PricingRuleResponse.model_validate(rule) for rule in rules]


@router.get("/v1/admin/pricing-rules/categories", response_model=list[str])
async def list_pricing_categories(
    service_type: ServiceType = Query(ServiceType.end_of_tenancy),
    session: AsyncSession = Depends(get_db_session),
) -> list[str]:
    return await service.list_categories(session, service_type)


@router.post(
    "/v1/admin/pricing-rules",
    response_model=schemas.PricingRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_pricing_rule(
    payload: schemas.PricingRuleCreate,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.PricingRuleResponse:
    try:
        rule = await service.create_rule(session, payload)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Pricing rule already exists") from exc
    return schemas.PricingRuleResponse.model_validate(rule)


@router.patch("/v1/admin/pricing-rules/{rule_id}", response_model=schemas.PricingRuleResponse)
async def update_pricing_rule(
    rule_id: int,
    payload: schemas.PricingRuleUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> schemas.PricingRuleResponse:
    rule = await service.update_rule(session, rule_id, payload)
    await session.commit()
    return schemas.PricingRuleResponse.model_validate(rule)


@router.delete("/v1/admin/pricing-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pricing_rule(
    rule_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await service.delete_rule(session, rule_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
