from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import time
import logging
import asyncio

from recommender_service.config import settings
from recommender_service.web.routes import recommend, train
from recommender_service.web.services.sync_service import get_sync_service

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Recommender Service",
    description="Recommender với cutoff được đồng bộ giữa các instances",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # /train có thể chậm vì phải đọc toàn bộ orders
    if process_time > 5:
        logger.warning(
            f"Slow request: {request.method} {request.url.path} "
            f"took {process_time:.2f}s"
        )
    return response


# Include routers
app.include_router(train.router)
app.include_router(recommend.router)

_training_task: Optional[asyncio.Task] = None


@app.on_event("startup")
async def startup_event():
    """Bắt đầu training loop (đồng bộ cutoff + train) ở background."""
    global _training_task

    service = get_sync_service()
    logger.info(
        f"Recommender starting: peers={service.settings.peers}, "
        f"registry={service.settings.registry_url}, pinned_cutoff={service.state.pinned}"
    )
    _training_task = asyncio.create_task(service.training_loop())


@app.on_event("shutdown")
async def shutdown_event():
    # Cycle đang chạy bị hủy, không commit cutoff dở dang
    if _training_task is not None and not _training_task.done():
        _training_task.cancel()
        try:
            await _training_task
        except asyncio.CancelledError:
            pass


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Recommender Service",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "recommender"}
