"""Tests for the starter achievement catalog and its seeding."""
import pytest
from sqlalchemy import func, select

from learnquest.models.gamification import (
    AchievementCategory,
    AchievementDefinition,
    AchievementStatus,
    CriterionType,
)
from learnquest.services.achievement_seeder import (
    calculate_points,
    generate_all_achievements,
    generate_tiered_achievements,
    get_achievement_count,
    seed_catalog,
    starter_catalog,
)
from learnquest.services.catalog import SqlAchievementCatalog


# =============================================================================
# GENERATION (pure functions, no DB)
# =============================================================================

class TestCalculatePoints:

    def test_minimum_is_five(self):
        for criterion in CriterionType:
            assert calculate_points(criterion, 1) >= 5

    def test_rounded_to_five(self):
        for criterion in CriterionType:
            for tier in range(1, 5):
                assert calculate_points(criterion, tier) % 5 == 0

    def test_grows_with_tier(self):
        for criterion in CriterionType:
            points = [calculate_points(criterion, tier) for tier in range(1, 5)]
            assert points == sorted(points)
            assert points[-1] > points[0]


class TestGenerateAchievements:

    def test_total_count(self):
        assert get_achievement_count() == 11

    def test_ids_are_unique(self):
        ids = [a["id"] for a in generate_all_achievements()]
        assert len(ids) == len(set(ids))

    def test_quiz_line(self):
        quizzes = [a for a in generate_all_achievements() if a["criterion_type"] == "quizzes"]

        assert [a["criterion_count"] for a in quizzes] == [1, 5, 25, 100]
        assert quizzes[0]["id"] == "quizzes_1"
        assert quizzes[0]["title"] == "First Quiz"
        assert quizzes[0]["description"] == "Complete 1 quiz"
        assert quizzes[1]["description"] == "Complete 5 quizzes"
        assert [a["tier"] for a in quizzes] == ["bronze", "silver", "gold", "platinum"]

    def test_activity_plural(self):
        activities = [a for a in generate_all_achievements() if a["criterion_type"] == "activities"]
        assert activities[0]["description"] == "Submit 1 activity"
        assert activities[1]["description"] == "Submit 10 activities"

    def test_all_start_active(self):
        assert all(a["status"] == "active" for a in generate_all_achievements())

    def test_too_many_tiers_rejected(self):
        with pytest.raises(ValueError):
            generate_tiered_achievements(
                id_prefix="x",
                title_templates=["a", "b", "c", "d", "e"],
                description_template="{count} {noun}",
                nouns=("x", "xs"),
                criterion_type=CriterionType.QUIZZES,
                category=AchievementCategory.LEARNING,
                thresholds=[1, 2, 3, 4, 5],
            )

    def test_starter_catalog_uses_enums(self):
        catalog = starter_catalog()

        assert len(catalog) == 11
        assert catalog[0].criterion_type is CriterionType.QUIZZES
        assert all(a.status is AchievementStatus.ACTIVE for a in catalog)


# =============================================================================
# SEEDING (SQLite)
# =============================================================================

class TestSeedCatalog:

    async def _count(self, session_maker):
        async with session_maker() as session:
            return (await session.execute(select(func.count(AchievementDefinition.id)))).scalar_one()

    async def test_seeds_empty_catalog(self, sql_session_maker):
        written = await seed_catalog(sql_session_maker)

        assert written == 11
        assert await self._count(sql_session_maker) == 11
        active = await SqlAchievementCatalog(sql_session_maker).fetch_active()
        assert {a.id for a in active} == {a["id"] for a in generate_all_achievements()}

    async def test_second_seed_is_noop(self, sql_session_maker):
        await seed_catalog(sql_session_maker)

        assert await seed_catalog(sql_session_maker) == 0
        assert await self._count(sql_session_maker) == 11

    async def test_force_replaces_existing(self, sql_session_maker):
        async with sql_session_maker() as session:
            session.add(AchievementDefinition(
                id="custom",
                title="Custom",
                criterion_type="quizzes",
                criterion_count=3,
            ))
            await session.commit()

        written = await seed_catalog(sql_session_maker, force=True)

        assert written == 11
        async with sql_session_maker() as session:
            ids = set((await session.execute(select(AchievementDefinition.id))).scalars())
        assert "custom" not in ids
        assert len(ids) == 11
