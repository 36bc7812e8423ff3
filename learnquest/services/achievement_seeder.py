"""Achievement seeder - generates the starter catalog of achievement definitions."""

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnquest.models.gamification import (
    AchievementDefinition,
    AchievementCategory,
    AchievementRarity,
    AchievementStatus,
    BadgeTier,
    CriterionType,
)
from learnquest.models.profile import Achievement

logger = logging.getLogger(__name__)


# Badge tier and rarity by position within a line
TIER_LADDER = [
    (BadgeTier.BRONZE, AchievementRarity.COMMON),
    (BadgeTier.SILVER, AchievementRarity.COMMON),
    (BadgeTier.GOLD, AchievementRarity.RARE),
    (BadgeTier.PLATINUM, AchievementRarity.EPIC),
]

BASE_POINTS = {
    CriterionType.QUIZZES: 10,
    CriterionType.MODULES: 20,
    CriterionType.ACTIVITIES: 15,
}


def calculate_points(criterion_type: CriterionType, tier: int) -> int:
    """Bonus XP for a tier; grows faster than linearly, rounded to 5."""
    base = BASE_POINTS[criterion_type]
    return max(5, round(base * tier * (1 + tier / 4) / 5) * 5)


def generate_tiered_achievements(
    id_prefix: str,
    title_templates: list[str],
    description_template: str,
    nouns: tuple[str, str],
    criterion_type: CriterionType,
    category: AchievementCategory,
    thresholds: list[int],
) -> list[dict[str, Any]]:
    """Generate one line of achievements with increasing thresholds."""
    if len(thresholds) > len(TIER_LADDER) or len(title_templates) != len(thresholds):
        raise ValueError(f"{id_prefix}: need one title per threshold and at most {len(TIER_LADDER)} tiers")

    achievements = []
    for i, (threshold, title) in enumerate(zip(thresholds, title_templates), 1):
        badge, rarity = TIER_LADDER[i - 1]
        achievements.append({
            "id": f"{id_prefix}_{threshold}",
            "title": title,
            "description": description_template.format(count=threshold, noun=nouns[0] if threshold == 1 else nouns[1]),
            "criterion_type": criterion_type.value,
            "criterion_count": threshold,
            "points": calculate_points(criterion_type, i),
            "status": AchievementStatus.ACTIVE.value,
            "tier": badge.value,
            "category": category.value,
            "rarity": rarity.value,
            "image_url": None,
        })
    return achievements


def generate_all_achievements() -> list[dict[str, Any]]:
    """Generate the default catalog."""
    achievements = []

    achievements.extend(generate_tiered_achievements(
        id_prefix="quizzes",
        title_templates=["First Quiz", "Quiz Regular", "Quiz Master", "Quiz Legend"],
        description_template="Complete {count} {noun}",
        nouns=("quiz", "quizzes"),
        criterion_type=CriterionType.QUIZZES,
        category=AchievementCategory.LEARNING,
        thresholds=[1, 5, 25, 100],
    ))

    achievements.extend(generate_tiered_achievements(
        id_prefix="modules",
        title_templates=["First Steps", "Bookworm", "Scholar", "Polymath"],
        description_template="Finish {count} learning {noun}",
        nouns=("module", "modules"),
        criterion_type=CriterionType.MODULES,
        category=AchievementCategory.LEARNING,
        thresholds=[1, 5, 15, 50],
    ))

    achievements.extend(generate_tiered_achievements(
        id_prefix="activities",
        title_templates=["Hands Up", "Hard Worker", "Unstoppable"],
        description_template="Submit {count} {noun}",
        nouns=("activity", "activities"),
        criterion_type=CriterionType.ACTIVITIES,
        category=AchievementCategory.ENGAGEMENT,
        thresholds=[1, 10, 50],
    ))

    return achievements


def get_achievement_count() -> int:
    """Return the total number of achievements generated."""
    return len(generate_all_achievements())


def starter_catalog() -> list[Achievement]:
    """The default catalog as engine value objects, for in-memory catalogs."""
    return [
        Achievement(
            **{
                **data,
                "criterion_type": CriterionType(data["criterion_type"]),
                "status": AchievementStatus(data["status"]),
            }
        )
        for data in generate_all_achievements()
    ]


async def seed_catalog(session_maker: async_sessionmaker[AsyncSession], force: bool = False) -> int:
    """Insert the default catalog. Returns how many definitions were written.

    Does nothing if definitions already exist, unless `force` is set, in
    which case existing definitions are replaced. Unlocks already recorded
    on user profiles are left alone.
    """
    async with session_maker() as session:
        result = await session.execute(select(AchievementDefinition.id).limit(1))
        existing = result.scalar_one_or_none()

        if existing and not force:
            logger.info("Achievement catalog already seeded; use force to re-seed")
            return 0

        if existing and force:
            await session.execute(delete(AchievementDefinition))
            logger.info("Cleared existing achievement definitions")

        achievements = generate_all_achievements()
        for data in achievements:
            session.add(AchievementDefinition(**data))

        await session.commit()

    logger.info("Seeded %d achievement definitions", len(achievements))
    return len(achievements)
