"""Error taxonomy for the gamification engine.

Only ProfileReadFailure and CommitConflict ever reach callers. Catalog
failures are absorbed by AchievementCatalog.load_active().
"""


class GamificationError(Exception):
    """Base class for engine failures."""


class CatalogUnavailable(GamificationError):
    """The achievement catalog could not be read."""


class ProfileReadFailure(GamificationError):
    """The profile store could not be reached; nothing was written."""

    def __init__(self, user_id: str, message: str | None = None):
        self.user_id = user_id
        super().__init__(message or f"Could not read gamification profile for user {user_id}")


class CommitConflict(GamificationError):
    """Optimistic-concurrency retries were exhausted for a profile commit."""

    def __init__(self, user_id: str, attempts: int):
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"Profile for user {user_id} kept changing underneath us; gave up after {attempts} attempts"
        )
