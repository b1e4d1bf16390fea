"""Entry point for running the application with uvicorn.

Usage:
    hospital-payroll
    hospital-payroll --create-schema
    hospital-payroll --create-schema --database-url sqlite+aiosqlite:///payroll.db
"""

import argparse
import asyncio
import logging

import uvicorn

from hospital_payroll.config import get_settings
from hospital_payroll.database import create_schema, get_engine
from hospital_payroll.models import Base

logger = logging.getLogger(__name__)


async def _create_schema(database_url: str | None) -> list[str]:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    return sorted(Base.metadata.tables)


def main(argv: list[str] | None = None) -> None:
    """Run the application, or create the database tables and exit."""
    parser = argparse.ArgumentParser(prog="hospital-payroll")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables and exit",
    )
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.create_schema:
        tables = asyncio.run(_create_schema(args.database_url))
        logger.info("Schema ready: %s", ", ".join(tables))
        return

    uvicorn.run(
        "hospital_payroll.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
