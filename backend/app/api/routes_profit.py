from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.profit.service import ProfitSummary, summarize_profit
from app.infra.db import get_db_session

router = APIRouter(tags=["admin-profit"])


@router.get("/v1/admin/profit", response_model=ProfitSummary)
async def get_profit_summary(
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
) -> ProfitSummary:
    if from_date and to_date and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must be on or before to_date",
        )
    return await summarize_profit(session, from_date, to_date)
