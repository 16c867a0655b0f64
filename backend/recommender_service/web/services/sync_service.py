"""
Sync Service
============

Wiring cho training-window synchronization: tạo CutoffState, PeerClient,
persistence client, trainer, ConsensusCoordinator và SyncDriver từ settings.
Chạy training loop khi app khởi động.
"""

import asyncio
import logging
from typing import Optional

from recommender_service.config import Settings, settings as default_settings
from recommender_service.errors import ConfigurationError
from recommender_service.recommender.consensus import ConsensusCoordinator
from recommender_service.recommender.cutoff_state import CutoffState
from recommender_service.recommender.popularity_trainer import PopularityTrainer
from recommender_service.recommender.sync_driver import FAILURE, OrderSource, SyncDriver
from recommender_service.web.services.peer_client import PeerClient
from recommender_service.web.services.persistence_client import (
    DatabasePersistenceClient,
    RestPersistenceClient,
)

logger = logging.getLogger(__name__)


def build_order_source(settings: Settings) -> OrderSource:
    """
    REST persistence service nếu có PERSISTENCE_URL, ngược lại dùng DATABASE_URL.
    """
    if settings.persistence_url:
        return RestPersistenceClient(settings.persistence_url, timeout=settings.persistence_timeout_seconds)
    if settings.database_url:
        return DatabasePersistenceClient(settings.database_url)
    raise ConfigurationError("Either PERSISTENCE_URL or DATABASE_URL must be set")


class SyncService:
    """
    Giữ các thành phần của một instance và chạy training loop.
    """

    def __init__(
        self,
        settings: Settings,
        source: Optional[OrderSource] = None,
        peers: Optional[PeerClient] = None
    ):
        self.settings = settings
        self.state = CutoffState()
        if settings.recommender_cutoff:
            self.state.pin(settings.recommender_cutoff)

        self.peers = peers or PeerClient(
            peers=settings.peers,
            registry_url=settings.registry_url,
            service_name=settings.service_name,
            self_address=settings.self_address,
            timeout=settings.peer_timeout_seconds
        )
        self.source = source or build_order_source(settings)
        self.trainer = PopularityTrainer()
        self.coordinator = ConsensusCoordinator(
            self.state,
            self.peers,
            peer_timeout=settings.peer_timeout_seconds
        )
        self.driver = SyncDriver(self.source, self.coordinator, self.trainer, self.state)

    async def training_loop(self) -> None:
        """
        Retrain cho tới khi thành công. Nếu RETRAIN_LOOP_SECONDS > 0 thì
        tiếp tục retrain định kỳ.
        """
        while True:
            try:
                count = await self.driver.run()
            except Exception as e:
                logger.error(f"Training cycle crashed: {e!r}", exc_info=True)
                count = FAILURE

            if count == FAILURE:
                logger.warning(
                    f"Training cycle failed, retrying in {self.settings.retrain_retry_seconds}s"
                )
                await asyncio.sleep(self.settings.retrain_retry_seconds)
                continue

            logger.info(f"Training cycle finished with {count} records, cutoff={self.state.get()}")
            if self.settings.retrain_loop_seconds <= 0:
                return
            await asyncio.sleep(self.settings.retrain_loop_seconds)


# Singleton instance
_sync_service_instance: Optional[SyncService] = None


def get_sync_service() -> SyncService:
    """
    Get singleton instance của SyncService (dùng làm FastAPI dependency).
    """
    global _sync_service_instance

    if _sync_service_instance is None:
        _sync_service_instance = SyncService(default_settings)

    return _sync_service_instance
