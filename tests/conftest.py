"""
Shared pytest fixtures cho recommender sync tests.

Cung cấp fake collaborators (peers, persistence, trainer) để test
ConsensusCoordinator / SyncDriver mà không cần network.
"""

import asyncio
from datetime import datetime
from pathlib import Path
import sys
from typing import Dict, List, Optional, Sequence

import pytest

# Ensure backend/ is on sys.path so `import recommender_service` works
# khi chạy pytest mà chưa `pip install -e .`
BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from recommender_service.config import Settings  # noqa: E402
from recommender_service.errors import FetchFailure  # noqa: E402
from recommender_service.web.schemas.order import Order, OrderItem  # noqa: E402

HANG = object()


def local_millis(text: str) -> int:
    """Epoch ms của một ISO local date-time (whole seconds) theo timezone local."""
    return int(datetime.fromisoformat(text).timestamp()) * 1000


class FakePeers:
    """
    PeerDirectory giả. Mỗi peer map tới: int (cutoff), None (chưa có cutoff),
    Exception (raise khi query) hoặc HANG (không bao giờ trả lời).
    """

    def __init__(self, replies: Optional[Dict[str, object]] = None):
        self.replies = dict(replies or {})
        self.queried: List[str] = []

    async def enumerate_peers(self) -> List[str]:
        return list(self.replies)

    async def fetch_cutoff(self, peer: str) -> Optional[int]:
        self.queried.append(peer)
        reply = self.replies[peer]
        if reply is HANG:
            await asyncio.sleep(3600)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeSource:
    """OrderSource giả trả về dữ liệu cố định hoặc raise FetchFailure."""

    def __init__(
        self,
        order_items: Sequence[OrderItem] = (),
        orders: Sequence[Order] = (),
        failures: int = 0
    ):
        self.order_items = list(order_items)
        self.orders = list(orders)
        self.failures = failures
        self.calls = 0

    async def fetch_all(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise FetchFailure("persistence service unreachable")
        return list(self.order_items), list(self.orders)


class RecordingTrainer:
    """Trainer giả, ghi lại dữ liệu được hand-off."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls = []
        self.error = error

    def train(self, order_items, orders):
        self.calls.append((list(order_items), list(orders)))
        if self.error is not None:
            raise self.error


@pytest.fixture
def e2e_orders() -> List[Order]:
    return [
        Order(id=1, time="2020-01-01T10:00:00"),
        Order(id=2, time="2020-01-02T10:00:00"),
    ]


@pytest.fixture
def e2e_items() -> List[OrderItem]:
    return [
        OrderItem(id=11, order_id=1, product_id=100, quantity=1),
        OrderItem(id=12, order_id=2, product_id=200, quantity=3),
        OrderItem(id=13, order_id=3, product_id=300, quantity=1),
    ]


@pytest.fixture
def test_settings() -> Settings:
    """Settings không phụ thuộc environment của máy chạy test."""
    settings = Settings()
    settings.recommender_cutoff = None
    settings.peers = []
    settings.registry_url = None
    settings.self_address = None
    settings.peer_timeout_seconds = 0.5
    settings.persistence_url = "http://persistence.invalid"
    settings.database_url = None
    settings.retrain_retry_seconds = 0
    settings.retrain_loop_seconds = 0
    settings.max_recommendations = 2
    return settings
