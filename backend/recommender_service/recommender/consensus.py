"""
Consensus Coordinator
=====================

Thống nhất cutoff giữa các instance của recommender service:
1. Hỏi tất cả peers cutoff hiện tại (GET train/timestamp), song song, có timeout
2. Lấy giá trị nhỏ nhất trong các câu trả lời thành công
3. Nếu không peer nào có cutoff -> lấy timestamp lớn nhất trong orders
4. Lưu kết quả vào CutoffState
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union

from recommender_service.errors import PeerDisagreement, PeerUnavailable
from recommender_service.recommender.cutoff_state import CutoffState
from recommender_service.recommender.time_codec import parse_timestamp
from recommender_service.web.schemas.order import Order

logger = logging.getLogger(__name__)

PeerResult = Union[int, None, PeerUnavailable]


class PeerDirectory(Protocol):
    """Capability để tìm peers và hỏi cutoff của từng peer."""

    async def enumerate_peers(self) -> List[str]:
        ...

    async def fetch_cutoff(self, peer: str) -> Optional[int]:
        """
        Returns:
            Cutoff của peer, hoặc None nếu peer chưa có cutoff

        Raises:
            PeerUnavailable: peer không trả lời / status khác 200
        """
        ...


@dataclass
class ConsensusRound:
    """Kết quả của một lần reconcile."""
    cutoff: Optional[int] = None
    replies: Dict[str, int] = field(default_factory=dict)
    disagreements: List[PeerDisagreement] = field(default_factory=list)
    unavailable: List[PeerUnavailable] = field(default_factory=list)
    used_fallback: bool = False
    pinned: bool = False


class ConsensusCoordinator:
    """
    Reconcile cutoff của instance này với các peers.
    """

    def __init__(
        self,
        state: CutoffState,
        peers: PeerDirectory,
        peer_timeout: float = 5.0
    ):
        """
        Args:
            state: CutoffState được share với SyncDriver
            peers: PeerDirectory (registry + RPC)
            peer_timeout: Timeout cho mỗi peer (giây)
        """
        self.state = state
        self.peers = peers
        self.peer_timeout = peer_timeout
        self.last_round: Optional[ConsensusRound] = None

    async def reconcile(self, orders: Sequence[Order]) -> Optional[int]:
        """
        Chạy một consensus round và lưu cutoff vào state.

        Nếu round bị cancel trước khi kết thúc thì state không thay đổi.

        Args:
            orders: Orders chưa lọc, dùng để tính cutoff khi không peer nào có

        Returns:
            Cutoff (epoch ms), None nếu không có peer trả lời và orders rỗng
        """
        current_round = ConsensusRound()

        if self.state.pinned:
            logger.info(f"Cutoff is pinned to {self.state.get()}, skipping time-check with peers")
            current_round.pinned = True
            current_round.cutoff = self.state.get()
            self.last_round = current_round
            return current_round.cutoff

        peers = await self.peers.enumerate_peers()
        logger.debug(f"Querying cutoff from {len(peers)} peers")
        results = await self._poll_peers(peers)

        cutoff = self.state.get()
        for peer, result in results:
            if isinstance(result, PeerUnavailable):
                logger.warning(result.message)
                current_round.unavailable.append(result)
                continue
            if result is None:
                logger.debug(f"Service {peer} has no cutoff yet")
                continue

            if cutoff is not None and cutoff != result:
                disagreement = PeerDisagreement(peer, cutoff, result)
                logger.warning(disagreement.message)
                current_round.disagreements.append(disagreement)
            cutoff = result if cutoff is None else min(cutoff, result)
            current_round.replies[peer] = result

        if cutoff is None:
            # Không peer nào có cutoff, instance này khởi động đầu tiên
            current_round.used_fallback = True
            cutoff = latest_order_time(orders)
            logger.info(f"No peer reported a cutoff, using latest order time: {cutoff}")

        self.state.set(cutoff)
        current_round.cutoff = cutoff
        self.last_round = current_round
        return cutoff

    async def _poll_peers(self, peers: Sequence[str]) -> List[Tuple[str, PeerResult]]:
        results = await asyncio.gather(*(self._query_peer(peer) for peer in peers))
        return list(zip(peers, results))

    async def _query_peer(self, peer: str) -> PeerResult:
        try:
            return await asyncio.wait_for(self.peers.fetch_cutoff(peer), timeout=self.peer_timeout)
        except asyncio.TimeoutError:
            return PeerUnavailable(peer, f"no reply within {self.peer_timeout}s")
        except PeerUnavailable as e:
            return e
        except Exception as e:
            # Lỗi bất kỳ của một peer chỉ loại peer đó khỏi round
            logger.debug(f"Unexpected error querying {peer}", exc_info=True)
            return PeerUnavailable(peer, repr(e))


def latest_order_time(orders: Sequence[Order]) -> Optional[int]:
    """
    Timestamp lớn nhất (epoch ms) trong orders, None nếu orders rỗng.
    """
    if not orders:
        return None
    return max(parse_timestamp(order.time) for order in orders)
