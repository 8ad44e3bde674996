#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.domain.pricing import service as pricing_service
from app.domain.pricing.models import ServiceType
from app.domain.pricing.rules import load_rule_config
from app.infra.logging import configure_logging
from app.settings import settings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Insert bundled pricing rules missing from the rule store.")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL to connect to. Defaults to DATABASE_URL or app.settings.",
    )
    parser.add_argument(
        "--service-type",
        choices=[service_type.value for service_type in ServiceType],
        default=ServiceType.end_of_tenancy.value,
        help="Service type the rules belong to.",
    )
    parser.add_argument(
        "--rules",
        default=None,
        help="Rule file to seed from (defaults to PRICING_RULES_PATH).",
    )
    return parser.parse_args()


def _resolve_database_url(cli_value: str | None) -> str:
    if cli_value:
        return cli_value
    env_value = os.getenv("DATABASE_URL")
    if env_value:
        return env_value
    return settings.database_url


async def _run() -> int:
    args = _parse_args()
    configure_logging(settings.log_level)
    config = load_rule_config(args.rules or settings.pricing_rules_path)

    engine = create_async_engine(_resolve_database_url(args.database_url), pool_pre_ping=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        inserted = await pricing_service.seed_rules(session, ServiceType(args.service_type), config)
        await session.commit()
    await engine.dispose()

    print(f"Inserted {inserted} rule(s) for {args.service_type}")
    return 0


def main() -> int:
    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
