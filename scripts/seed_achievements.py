"""
Script to seed the default achievement catalog into the database.
Run with: python -m scripts.seed_achievements [--force]
"""

import asyncio
import sys

from learnquest.core.database import async_session_maker, engine
from learnquest.core.logging_config import configure_logging
from learnquest.models.base import Base
from learnquest.services.achievement_seeder import get_achievement_count, seed_catalog


async def main_async(force: bool) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    written = await seed_catalog(async_session_maker, force=force)
    if written:
        print(f"Seeded {written} of {get_achievement_count()} achievement definitions.")
    else:
        print("Achievements already seeded. Use --force to re-seed.")

    await engine.dispose()


def main():
    configure_logging()
    force = "--force" in sys.argv
    asyncio.run(main_async(force))


if __name__ == "__main__":
    main()
