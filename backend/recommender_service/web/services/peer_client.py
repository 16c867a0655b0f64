"""
Peer Client
===========

Tìm các instance khác của recommender service (danh sách cố định và/hoặc
registry) và hỏi cutoff của từng instance qua HTTP (aiohttp).
"""

import asyncio
import logging
import re
from typing import List, Optional, Sequence

import aiohttp

from recommender_service.errors import PeerUnavailable

logger = logging.getLogger(__name__)

_EPOCH_MILLIS = re.compile(r"-?[0-9]+")


def normalize_peer_url(address: str) -> str:
    """host:port -> http://host:port, bỏ dấu / ở cuối."""
    address = address.strip().rstrip("/")
    if "://" not in address:
        address = f"http://{address}"
    return address


class PeerClient:
    """
    PeerDirectory dùng HTTP: GET {registry}/services/{service_name} để tìm peers,
    GET {peer}/train/timestamp để lấy cutoff.
    """

    def __init__(
        self,
        peers: Sequence[str] = (),
        registry_url: Optional[str] = None,
        service_name: str = "recommender",
        self_address: Optional[str] = None,
        timeout: float = 5.0
    ):
        """
        Args:
            peers: Base URLs cố định của peers
            registry_url: Base URL của service registry (optional)
            service_name: Tên service để lookup trong registry
            self_address: Địa chỉ của chính instance này, sẽ bị loại khỏi danh sách
            timeout: Timeout cho mỗi request (giây)
        """
        self.static_peers = [normalize_peer_url(p) for p in peers]
        self.registry_url = registry_url.rstrip("/") if registry_url else None
        self.service_name = service_name
        self.self_address = normalize_peer_url(self_address) if self_address else None
        self.timeout = timeout

    async def enumerate_peers(self) -> List[str]:
        """
        Returns:
            Danh sách peer base URLs (đã deduplicate, không gồm chính mình)
        """
        candidates = list(self.static_peers)
        if self.registry_url:
            candidates.extend(await self._lookup_registry())

        seen = set()
        peers = []
        for peer in candidates:
            if peer == self.self_address or peer in seen:
                continue
            seen.add(peer)
            peers.append(peer)
        return peers

    async def _lookup_registry(self) -> List[str]:
        url = f"{self.registry_url}/services/{self.service_name}"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        logger.warning(f"Registry lookup {url} returned status {resp.status}")
                        return []
                    data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Registry lookup {url} failed: {e!r}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Registry lookup {url} returned unexpected payload")
            return []
        return [normalize_peer_url(str(address)) for address in data]

    async def fetch_cutoff(self, peer: str) -> Optional[int]:
        """
        Hỏi cutoff hiện tại của một peer.

        Returns:
            Cutoff (epoch ms), None nếu peer chưa có cutoff (404)

        Raises:
            PeerUnavailable: lỗi kết nối, timeout, status khác 200 hoặc body không phải số
        """
        url = f"{peer}/train/timestamp"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(url, headers={"Accept": "text/plain"}) as resp:
                    if resp.status == 404:
                        return None
                    if resp.status != 200:
                        raise PeerUnavailable(peer, f"status {resp.status}")
                    body = (await resp.text()).strip()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PeerUnavailable(peer, repr(e)) from e
        except UnicodeDecodeError as e:
            raise PeerUnavailable(peer, f"undecodable body: {e.reason}") from e

        if not _EPOCH_MILLIS.fullmatch(body):
            raise PeerUnavailable(peer, f"invalid body {body!r}")
        return int(body)
