from __future__ import annotations

import logging
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.errors import PricingRuleNotFoundError, PricingRuleValueTypeError
from app.domain.pricing import db_models, schemas
from app.domain.pricing.models import RuleCategory, ServiceType, ValueType
from app.domain.pricing.rules import RateRule, RuleSet

logger = logging.getLogger(__name__)


def _ordered(stmt: sa.Select) -> sa.Select:
    return stmt.order_by(
        db_models.PricingFieldConfig.category_order,
        db_models.PricingFieldConfig.display_order,
        db_models.PricingFieldConfig.rule_id,
    )


async def list_rules(
    session: AsyncSession,
    service_type: ServiceType,
    *,
    category: RuleCategory | None = None,
    only_visible: bool = False,
    include_inactive: bool = False,
) -> list[db_models.PricingFieldConfig]:
    stmt = sa.select(db_models.PricingFieldConfig).where(
        db_models.PricingFieldConfig.service_type == service_type.value
    )
    if not include_inactive:
        stmt = stmt.where(db_models.PricingFieldConfig.is_active.is_(True))
    if category is not None:
        stmt = stmt.where(db_models.PricingFieldConfig.category == category.value)
    if only_visible:
        stmt = stmt.where(db_models.PricingFieldConfig.is_visible.is_(True))
    result = await session.scalars(_ordered(stmt))
    return list(result)


async def list_categories(session: AsyncSession, service_type: ServiceType) -> list[str]:
    rules = await list_rules(session, service_type)
    seen: set[str] = set()
    categories: list[str] = []
    for rule in rules:
        if rule.category not in seen:
            seen.add(rule.category)
            categories.append(rule.category)
    return categories


async def get_rule(session: AsyncSession, rule_id: int) -> db_models.PricingFieldConfig:
    rule = await session.get(db_models.PricingFieldConfig, rule_id)
    if rule is None:
        raise PricingRuleNotFoundError(rule_id)
    return rule


async def create_rule(
    session: AsyncSession, payload: schemas.PricingRuleCreate
) -> db_models.PricingFieldConfig:
    rule = db_models.PricingFieldConfig(**payload.model_dump(mode="json"))
    session.add(rule)
    await session.flush()
    await session.refresh(rule)
    return rule


async def update_rule(
    session: AsyncSession, rule_id: int, payload: schemas.PricingRuleUpdate
) -> db_models.PricingFieldConfig:
    rule = await get_rule(session, rule_id)
    updates = payload.model_dump(mode="json", exclude_unset=True)
    percentage_categories = {category.value for category in schemas.PERCENTAGE_CATEGORIES}
    if (
        rule.category in percentage_categories
        and updates.get("value_type", ValueType.percentage.value) != ValueType.percentage.value
    ):
        raise PricingRuleValueTypeError(rule.category)
    for field, value in updates.items():
        setattr(rule, field, value)
    await session.flush()
    await session.refresh(rule)
    return rule


async def delete_rule(session: AsyncSession, rule_id: int) -> None:
    rule = await get_rule(session, rule_id)
    await session.delete(rule)
    await session.flush()


def _to_rate_rule(record: db_models.PricingFieldConfig) -> RateRule | None:
    try:
        category = RuleCategory(record.category)
    except ValueError:
        logger.warning(
            "pricing_rule_unknown_category",
            extra={"extra": {"rule_id": record.rule_id, "category": record.category}},
        )
        return None
    try:
        value_type = ValueType(record.value_type or ValueType.fixed.value)
    except ValueError:
        logger.warning(
            "pricing_rule_unknown_value_type",
            extra={"extra": {"rule_id": record.rule_id, "value_type": record.value_type}},
        )
        return None
    return RateRule(
        category=category,
        option=record.option,
        value=float(record.value or 0.0),
        value_type=value_type,
        time=float(record.time or 0.0),
    )


async def load_rule_set(session: AsyncSession, service_type: ServiceType) -> RuleSet:
    records = await list_rules(session, service_type)
    rules = [rule for rule in (_to_rate_rule(record) for record in records) if rule is not None]
    return RuleSet.from_rules(rules, source=f"db:{service_type.value}")


async def seed_rules(
    session: AsyncSession, service_type: ServiceType, config: dict[str, Any]
) -> int:
    """Insert the bundled rules that the store does not have yet. Returns the number inserted."""
    existing = await list_rules(session, service_type, include_inactive=True)
    known = {(record.category, record.option) for record in existing}
    inserted = 0
    category_order: dict[str, int] = {}
    for index, item in enumerate(config["rules"]):
        category_order.setdefault(item["category"], len(category_order))
        if (item["category"], str(item["option"])) in known:
            continue
        session.add(
            db_models.PricingFieldConfig(
                service_type=service_type.value,
                category=item["category"],
                option=str(item["option"]),
                label=item.get("label"),
                value=float(item.get("value") or 0.0),
                value_type=item.get("value_type") or ValueType.fixed.value,
                time=item.get("time"),
                display_order=index,
                category_order=category_order[item["category"]],
            )
        )
        inserted += 1
    await session.flush()
    logger.info(
        "pricing_rules_seeded",
        extra={"extra": {"service_type": service_type.value, "inserted": inserted}},
    )
    return inserted
