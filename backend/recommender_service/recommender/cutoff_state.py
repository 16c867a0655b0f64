"""
Cutoff State
============

Giữ cutoff (epoch milliseconds) đã được các instance thống nhất.
None nghĩa là chưa có cutoff, tức là dùng toàn bộ orders để train.
"""

import logging
import re
from typing import Optional, Union

from recommender_service.errors import ConfigurationError, MalformedTimestamp
from recommender_service.recommender.time_codec import parse_timestamp

logger = logging.getLogger(__name__)

_EPOCH_MILLIS = re.compile(r"-?[0-9]+")


class CutoffState:
    """
    State của cutoff trong process. Được inject vào ConsensusCoordinator
    và SyncDriver, không dùng biến global.

    Last writer wins; SyncDriver đảm bảo các cycle chạy tuần tự.
    """

    def __init__(self, value: Optional[int] = None):
        self._value = value
        self._pinned = False

    def get(self) -> Optional[int]:
        return self._value

    def set(self, value: Optional[int]) -> None:
        self._value = value

    @property
    def is_set(self) -> bool:
        return self._value is not None

    @property
    def pinned(self) -> bool:
        """True nếu operator đã cố định cutoff (bỏ qua consensus)."""
        return self._pinned

    def pin(self, value: Union[int, str]) -> int:
        """
        Cố định cutoff từ cấu hình của operator.

        Args:
            value: Epoch milliseconds (int hoặc chuỗi số) hoặc timestamp string
                   dạng "2020-01-02T10:00:00"

        Returns:
            Cutoff đã parse
        """
        if isinstance(value, bool):
            raise ConfigurationError(f"Invalid cutoff override: {value!r}")
        if isinstance(value, int):
            millis = value
        else:
            text = str(value).strip()
            if _EPOCH_MILLIS.fullmatch(text):
                millis = int(text)
            else:
                try:
                    millis = parse_timestamp(text)
                except MalformedTimestamp as e:
                    raise ConfigurationError(f"Invalid cutoff override: {value!r}") from e

        self._value = millis
        self._pinned = True
        logger.info(f"Cutoff pinned by operator: {millis}")
        return millis

    def unpin(self) -> None:
        self._pinned = False

    def __repr__(self) -> str:
        return f"CutoffState(value={self._value}, pinned={self._pinned})"
