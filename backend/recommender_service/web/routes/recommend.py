"""
Recommendation API routes
=========================
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from recommender_service.errors import TrainingError
from recommender_service.web.schemas.order import RecommendRequest, RecommendResponse
from recommender_service.web.services.sync_service import SyncService, get_sync_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommend", tags=["recommendations"])


@router.post(
    "",
    response_model=RecommendResponse,
    summary="Get recommendations",
    description="Recommend products dựa trên model đã train, bỏ qua products đã có trong request"
)
async def recommend(
    request: RecommendRequest,
    service: SyncService = Depends(get_sync_service)
):
    try:
        product_ids = service.trainer.recommend(
            request.items,
            uid=request.uid,
            max_recommendations=service.settings.max_recommendations
        )
    except TrainingError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return RecommendResponse(product_ids=product_ids, total=len(product_ids))
