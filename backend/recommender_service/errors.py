"""
Recommender Sync Errors
=======================

Exception hierarchy cho training-window synchronization.
Tất cả exception kế thừa từ RecommenderSyncError để dễ catch/filter.

Usage:
    from recommender_service.errors import FetchFailure

    try:
        items, orders = await persistence.fetch_all()
    except FetchFailure as e:
        logger.error(f"Database retrieving failed: {e.message}")
"""

from typing import Any, Optional

__all__ = [
    "ConfigurationError",
    "FetchFailure",
    "MalformedTimestamp",
    "PeerDisagreement",
    "PeerUnavailable",
    "RecommenderSyncError",
    "TrainingError",
]


class RecommenderSyncError(Exception):
    """Base exception cho recommender sync.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "RECOMMENDER_SYNC_ERROR"

    def __init__(
        self,
        message: str = "",
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"


class FetchFailure(RecommenderSyncError):
    """Persistence service không truy cập được hoặc trả về dữ liệu lỗi."""
    code = "FETCH_FAILURE"


class PeerUnavailable(RecommenderSyncError):
    """Một peer không trả lời, timeout, hoặc trả về status khác 200."""
    code = "PEER_UNAVAILABLE"

    def __init__(self, peer: str, reason: str = "not available"):
        super().__init__(f"Service {peer} was not available for time-check: {reason}", {"peer": peer})
        self.peer = peer
        self.reason = reason


class PeerDisagreement(RecommenderSyncError):
    """Peer báo cutoff khác với cutoff đang giữ local."""
    code = "PEER_DISAGREEMENT"

    def __init__(self, peer: str, local: int, remote: int):
        super().__init__(
            f"Services disagree about timestamp: {local} vs {remote}",
            {"peer": peer},
        )
        self.peer = peer
        self.local = local
        self.remote = remote


class MalformedTimestamp(RecommenderSyncError, ValueError):
    """Timestamp string không đúng ISO-8601 local date-time."""
    code = "MALFORMED_TIMESTAMP"

    def __init__(self, text: Any):
        super().__init__(f"Cannot parse timestamp: {text!r}", {"value": text})
        self.text = text


class ConfigurationError(RecommenderSyncError):
    """Giá trị cấu hình không hợp lệ."""
    code = "CONFIGURATION_ERROR"


class TrainingError(RecommenderSyncError):
    """Model chưa được train hoặc training thất bại."""
    code = "TRAINING_ERROR"
