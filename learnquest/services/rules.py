"""Achievement rule evaluation."""

from typing import Container, Iterable

from learnquest.models.profile import Achievement, Stats


def evaluate_achievements(
    stats: Stats,
    catalog: Iterable[Achievement],
    already_unlocked: Container[str],
) -> list[Achievement]:
    """
    Return the achievements newly satisfied by `stats`, in catalog order.

    Skips inactive definitions, ones already unlocked, thresholds <= 0 and
    criterion types with no matching counter.
    """
    newly_satisfied = []
    seen_ids = set()

    for achievement in catalog:
        if achievement.id in already_unlocked or achievement.id in seen_ids:
            continue
        if not achievement.is_active:
            continue
        if achievement.criterion_count <= 0:
            continue

        current = stats.count_for(achievement.criterion_type)
        if current is None:
            continue

        if current >= achievement.criterion_count:
            newly_satisfied.append(achievement)
            seen_ids.add(achievement.id)

    return newly_satisfied


def achievement_progress(stats: Stats, achievement: Achievement) -> tuple[int, float]:
    """(current counter value, progress towards the threshold capped at 1.0)."""
    current = stats.count_for(achievement.criterion_type) or 0
    if achievement.criterion_count <= 0:
        return current, 0.0
    return current, min(current / achievement.criterion_count, 1.0)
