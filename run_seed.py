import asyncio
import logging

from app.core.config import get_settings
from app.core.db import close_engine, create_schema, get_session_factory, init_engine
from app.core.logging import configure_logging
from app.infra.db.seed import seed_defaults

logger = logging.getLogger("run_seed")


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    engine = init_engine()
    try:
        if settings.db_auto_create:
            await create_schema(engine)
        session_factory = get_session_factory()
        async with session_factory() as session:
            await seed_defaults(session)
            await session.commit()
        logger.info("Seed data loaded")
    finally:
        await close_engine(engine)


if __name__ == "__main__":
    asyncio.run(main())
