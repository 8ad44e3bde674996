import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.pricing import service as pricing_service
from app.domain.pricing.models import ServiceType
from app.domain.pricing.rules import RuleSet, load_rule_set
from app.infra.db import get_db_session
from app.settings import settings

logger = logging.getLogger(__name__)


@lru_cache
def get_bundled_rule_set() -> RuleSet:
    return load_rule_set(settings.pricing_rules_path)


async def get_rule_set(
    service_type: ServiceType,
    session: AsyncSession = Depends(get_db_session),
) -> RuleSet:
    rules = await pricing_service.load_rule_set(session, service_type)
    if len(rules) == 0 and service_type == ServiceType.end_of_tenancy:
        bundled = get_bundled_rule_set()
        logger.info(
            "quote_rules_fallback",
            extra={"extra": {"service_type": service_type.value, "source": bundled.source}},
        )
        return bundled
    return rules
