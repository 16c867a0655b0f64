"""
Train API routes
================

Endpoints cho training và đồng bộ cutoff giữa các instances.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from recommender_service.recommender.sync_driver import FAILURE
from recommender_service.web.schemas.order import TrainResponse
from recommender_service.web.services.sync_service import SyncService, get_sync_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/train", tags=["train"])


@router.get(
    "/timestamp",
    response_class=PlainTextResponse,
    summary="Get current cutoff",
    description="Cutoff hiện tại (epoch milliseconds) dạng text/plain, peers gọi endpoint này khi đồng bộ"
)
async def get_timestamp(service: SyncService = Depends(get_sync_service)):
    cutoff = service.state.get()
    if cutoff is None:
        raise HTTPException(status_code=404, detail="No cutoff agreed yet")
    return PlainTextResponse(str(cutoff))


@router.get(
    "",
    response_model=TrainResponse,
    summary="Retrain",
    description="Đọc lại dữ liệu, đồng bộ cutoff với peers và train lại model"
)
async def retrain(
    response: Response,
    service: SyncService = Depends(get_sync_service)
):
    """
    Chạy một synchronization cycle ngay.

    Returns:
        TrainResponse (status 500 nếu cycle thất bại)
    """
    count = await service.driver.run()
    duration_ms = service.driver.last_duration_ms or 0

    if count == FAILURE:
        response.status_code = 500
        return TrainResponse(
            success=False,
            message="The (re)train was not successful.",
            duration_ms=duration_ms,
            record_count=count,
            cutoff=service.state.get()
        )

    return TrainResponse(
        success=True,
        message=(
            f"The (re)train was successfully done. It took {duration_ms}ms "
            f"and {count} orders and order items were used."
        ),
        duration_ms=duration_ms,
        record_count=count,
        cutoff=service.state.get()
    )


@router.get(
    "/isready",
    response_model=bool,
    summary="Is the recommender trained"
)
async def is_ready(service: SyncService = Depends(get_sync_service)):
    return service.trainer.is_ready
