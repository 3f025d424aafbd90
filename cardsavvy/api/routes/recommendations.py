"""Card recommendations - cached per user, regenerated on demand"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from cardsavvy.api.dependencies import (
    get_profile_service,
    get_recommendation_pipeline,
    get_request_id,
    get_settings,
    get_storage,
    require_user_id,
)
from cardsavvy.api.routes.schemas import CardRecommendationResponse
from cardsavvy.config import Settings
from cardsavvy.domain.models import CardRecommendation, FinancialProfile
from cardsavvy.domain.profile import ProfileService
from cardsavvy.domain.recommendations import RecommendationPipeline
from cardsavvy.infrastructure.observability.metrics import record_recommendations
from cardsavvy.infrastructure.storage.base import Storage

router = APIRouter()


async def _generate_and_store(
    profile: FinancialProfile,
    limit: int,
    pipeline: RecommendationPipeline,
    storage: Storage,
) -> List[CardRecommendation]:
    """Run the pipeline and store the result; an empty result is not stored"""
    recommendations = await pipeline.recommend(profile, limit)
    record_recommendations("generated")
    if not recommendations:
        return []
    return storage.create_card_recommendations(profile.user_id, recommendations)


@router.get("/recommendations", response_model=List[CardRecommendationResponse])
async def get_recommendations(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=50, description="Maximum number of cards"),
    user_id: str = Depends(require_user_id),
    storage: Storage = Depends(get_storage),
    profiles: ProfileService = Depends(get_profile_service),
    pipeline: RecommendationPipeline = Depends(get_recommendation_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Stored recommendations for the caller, generating them on first request.

    An empty list means no candidates could be retrieved; clients fall back
    to their own static suggestions.
    """
    profile = profiles.get_profile(user_id)
    limit = limit or settings.recommendation_limit

    cached = storage.get_card_recommendations(user_id)
    if cached:
        record_recommendations("cached")
        return [CardRecommendationResponse.from_domain(r) for r in cached[:limit]]

    logging.info(
        "Generating recommendations",
        extra={"user_id": user_id, "request_id": get_request_id(request), "limit": limit},
    )
    stored = await _generate_and_store(profile, limit, pipeline, storage)
    return [CardRecommendationResponse.from_domain(r) for r in stored]


@router.post("/recommendations/regenerate", response_model=List[CardRecommendationResponse])
async def regenerate_recommendations(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=50, description="Maximum number of cards"),
    user_id: str = Depends(require_user_id),
    storage: Storage = Depends(get_storage),
    profiles: ProfileService = Depends(get_profile_service),
    pipeline: RecommendationPipeline = Depends(get_recommendation_pipeline),
    settings: Settings = Depends(get_settings),
):
    """Discard stored recommendations and run the pipeline again"""
    profile = profiles.get_profile(user_id)
    removed = storage.delete_card_recommendations(user_id)
    logging.info(
        "Regenerating recommendations",
        extra={"user_id": user_id, "request_id": get_request_id(request), "removed": removed},
    )
    stored = await _generate_and_store(profile, limit or settings.recommendation_limit, pipeline, storage)
    return [CardRecommendationResponse.from_domain(r) for r in stored]
