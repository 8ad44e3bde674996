from fastapi import APIRouter, Depends

from app.dependencies import get_rule_set
from app.domain.pricing.calculator import calculate_quote
from app.domain.pricing.models import QuoteInput, QuoteResult, ServiceType
from app.domain.pricing.rules import RuleSet

router = APIRouter(tags=["quotes"])


@router.post("/v1/quotes/{service_type}", response_model=QuoteResult)
async def create_quote(
    service_type: ServiceType,
    request: QuoteInput,
    rules: RuleSet = Depends(get_rule_set),
) -> QuoteResult:
    return calculate_quote(request, rules)
