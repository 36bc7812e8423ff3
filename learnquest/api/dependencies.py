from fastapi import Request

from learnquest.services.catalog import AchievementCatalog
from learnquest.services.gamification import EventProcessor


def get_event_processor(request: Request) -> EventProcessor:
    """Engine built during app startup (see learnquest.main.lifespan)."""
    return request.app.state.event_processor


def get_catalog(request: Request) -> AchievementCatalog:
    return request.app.state.event_processor.catalog
