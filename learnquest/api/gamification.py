"""Gamification API endpoints for events, streaks, progress and achievements.

Callers are trusted collaborators (quiz, module and activity handlers, the
session service); authentication happens in front of this service.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from learnquest.api.dependencies import get_catalog, get_event_processor
from learnquest.api.schemas import (
    AchievementResponse,
    AchievementStatusResponse,
    ErrorResponse,
    EventRequest,
    EventResponse,
    MarkSeenRequest,
    MarkSeenResponse,
    ProgressResponse,
    StreakRequest,
    StreakResponse,
)
from learnquest.core.errors import CatalogUnavailable, CommitConflict, ProfileReadFailure
from learnquest.services.catalog import AchievementCatalog, CachedAchievementCatalog
from learnquest.services.gamification import EventProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gamification", tags=["gamification"])

ENGINE_ERRORS = {
    409: {"model": ErrorResponse, "description": "Profile kept changing; retry the event"},
    503: {"model": ErrorResponse, "description": "Profile store unavailable"},
}


def _store_unavailable(e: ProfileReadFailure) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Gamification profile unavailable for user {e.user_id}",
    )


def _conflict(e: CommitConflict) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Concurrent updates for user {e.user_id}; retry the request",
    )


# =============================================================================
# EVENTS
# =============================================================================

@router.post("/events", response_model=EventResponse, responses=ENGINE_ERRORS)
async def record_event(
    request: EventRequest,
    processor: EventProcessor = Depends(get_event_processor),
) -> EventResponse:
    """Record a completed quiz, module or activity and return any new unlocks."""
    try:
        unlocked = await processor.process(request.user_id, request.event_type, request.base_xp)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    except CommitConflict as e:
        logger.warning("Event %s for user %s not recorded: %s", request.event_type.value, request.user_id, e)
        raise _conflict(e)

    return EventResponse(
        newly_unlocked=[AchievementResponse.from_achievement(a) for a in unlocked],
        bonus_xp=sum(a.points for a in unlocked),
    )


@router.post("/streak", response_model=StreakResponse, responses=ENGINE_ERRORS)
async def touch_streak(
    request: StreakRequest,
    processor: EventProcessor = Depends(get_event_processor),
) -> StreakResponse:
    """Record a session for the user's login streak."""
    try:
        touch = await processor.touch_streak(request.user_id, request.today)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    except CommitConflict as e:
        raise _conflict(e)

    return StreakResponse(streak_changed=touch.streak_changed, new_count=touch.new_count)


# =============================================================================
# PROFILE
# =============================================================================

@router.get("/profile/{user_id}", response_model=ProgressResponse, responses=ENGINE_ERRORS)
async def get_progress(
    user_id: str,
    processor: EventProcessor = Depends(get_event_processor),
) -> ProgressResponse:
    """Get a user's XP, level, stats, streak and achievement counts."""
    try:
        summary = await processor.get_progress(user_id)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    return ProgressResponse.from_summary(summary)


# =============================================================================
# ACHIEVEMENTS
# =============================================================================

@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements(
    include_inactive: bool = Query(default=False, description="Include switched-off definitions"),
    catalog: AchievementCatalog = Depends(get_catalog),
) -> list[AchievementResponse]:
    """List achievement definitions in catalog order."""
    if not include_inactive:
        definitions = await catalog.load_active()
    else:
        try:
            definitions = await catalog.load_all()
        except CatalogUnavailable:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Achievement catalog unavailable",
            )
    return [AchievementResponse.from_achievement(a) for a in definitions]


@router.post("/achievements/refresh", response_model=list[AchievementResponse])
async def refresh_achievements(
    catalog: AchievementCatalog = Depends(get_catalog),
) -> list[AchievementResponse]:
    """Drop the cached catalog so admin edits apply immediately."""
    if isinstance(catalog, CachedAchievementCatalog):
        definitions = await catalog.refresh()
    else:
        definitions = await catalog.load_active()
    return [AchievementResponse.from_achievement(a) for a in definitions]


@router.get(
    "/achievements/{user_id}",
    response_model=list[AchievementStatusResponse],
    responses=ENGINE_ERRORS,
)
async def get_achievement_board(
    user_id: str,
    processor: EventProcessor = Depends(get_event_processor),
) -> list[AchievementStatusResponse]:
    """Active achievements with the user's lock state and progress."""
    try:
        board = await processor.achievement_board(user_id)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    return [AchievementStatusResponse.from_view(view) for view in board]


@router.get(
    "/achievements/{user_id}/unseen",
    response_model=list[AchievementStatusResponse],
    responses=ENGINE_ERRORS,
)
async def get_unseen_achievements(
    user_id: str,
    processor: EventProcessor = Depends(get_event_processor),
) -> list[AchievementStatusResponse]:
    """Unlocked achievements that haven't been shown to the user yet."""
    try:
        views = await processor.unseen_achievements(user_id)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    return [AchievementStatusResponse.from_view(view) for view in views]


@router.post(
    "/achievements/{user_id}/mark-seen",
    response_model=MarkSeenResponse,
    responses=ENGINE_ERRORS,
)
async def mark_achievements_seen(
    user_id: str,
    request: MarkSeenRequest,
    processor: EventProcessor = Depends(get_event_processor),
) -> MarkSeenResponse:
    """Mark achievements as seen (user has been notified)."""
    try:
        marked = await processor.mark_seen(user_id, request.achievement_ids)
    except ProfileReadFailure as e:
        raise _store_unavailable(e)
    except CommitConflict as e:
        raise _conflict(e)
    return MarkSeenResponse(status="ok", marked=marked)
