from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import Boolean, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.infra.db import Base


class PricingFieldConfig(Base):
    __tablename__ = "pricing_field_configs"
    __table_args__ = (
        Index("ix_pricing_field_configs_service_category", "service_type", "category"),
        sa.UniqueConstraint(
            "service_type", "category", "option", name="uq_pricing_field_configs_service_category_option"
        ),
    )

    rule_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_type: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    option: Mapped[str] = mapped_column(String(120), nullable=False)
    label: Mapped[str | None] = mapped_column(String(255))
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    value_type: Mapped[str] = mapped_column(String(16), nullable=False, default="fixed")
    time: Mapped[float | None] = mapped_column(Float)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    category_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
