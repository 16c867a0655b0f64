"""
Sync Driver
===========

Một synchronization cycle đầy đủ:
Fetch (persistence) -> Consensus (cutoff) -> Filter -> Train
"""

import asyncio
import logging
import time
from typing import List, Optional, Protocol, Tuple

from recommender_service.errors import FetchFailure, MalformedTimestamp
from recommender_service.recommender.consensus import ConsensusCoordinator
from recommender_service.recommender.cutoff_state import CutoffState
from recommender_service.recommender.popularity_trainer import Trainer
from recommender_service.recommender.record_filter import filter_records
from recommender_service.web.schemas.order import Order, OrderItem

logger = logging.getLogger(__name__)

FAILURE = -1


class OrderSource(Protocol):
    """Persistence collaborator: đọc toàn bộ order items và orders."""

    async def fetch_all(self) -> Tuple[List[OrderItem], List[Order]]:
        """
        Raises:
            FetchFailure: nếu không đọc được dữ liệu
        """
        ...


class SyncDriver:
    """
    Điều phối retrieve data + retrain. Các cycle chạy tuần tự (asyncio.Lock).
    """

    def __init__(
        self,
        source: OrderSource,
        coordinator: ConsensusCoordinator,
        trainer: Trainer,
        state: CutoffState
    ):
        self.source = source
        self.coordinator = coordinator
        self.trainer = trainer
        self.state = state
        self.last_count: Optional[int] = None
        self.last_duration_ms: Optional[int] = None
        self._lock = asyncio.Lock()

    async def run(self) -> int:
        """
        Chạy một synchronization cycle.

        Returns:
            Số orders + order items đã dùng để train, hoặc FAILURE (-1)
        """
        async with self._lock:
            start_time = time.monotonic()
            count = await self._run_cycle()
            self.last_count = count
            self.last_duration_ms = int((time.monotonic() - start_time) * 1000)
            return count

    async def _run_cycle(self) -> int:
        logger.debug("Retrieving data objects from database...")
        try:
            order_items, orders = await self.source.fetch_all()
        except FetchFailure as e:
            logger.error(f"Database retrieving failed: {e}")
            return FAILURE
        logger.debug(f"Retrieved {len(order_items)} orderItems and {len(orders)} orders")

        previous_cutoff = self.state.get()
        try:
            cutoff = await self.coordinator.reconcile(orders)
            order_items, orders = filter_records(order_items, orders, cutoff)
        except MalformedTimestamp as e:
            # Bỏ cả cycle, trả state về như trước cycle
            self.state.set(previous_cutoff)
            logger.error(f"Aborting training cycle: {e}")
            return FAILURE

        try:
            self.trainer.train(order_items, orders)
            logger.info("Finished training, ready for recommendation.")
        except Exception as e:
            logger.error(f"Training failed: {e}", exc_info=True)

        return len(order_items) + len(orders)
