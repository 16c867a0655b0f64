"""
Time Codec
==========

Parse timestamp string của persistence service (ISO-8601 local date-time,
không có timezone) thành epoch milliseconds theo timezone local của process.
"""

import re
from datetime import datetime

from recommender_service.errors import MalformedTimestamp

# YYYY-MM-DDTHH:MM[:SS[.fraction]]
_LOCAL_DATE_TIME = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?",
    re.ASCII
)


def parse_timestamp(text: str) -> int:
    """
    Convert ISO local date-time string -> epoch milliseconds.

    Args:
        text: Ví dụ "2020-01-02T10:00:00" hoặc "2020-01-02T10:00:00.123"

    Returns:
        Epoch milliseconds (phần dưới millisecond bị cắt bỏ)

    Raises:
        MalformedTimestamp: nếu text không khớp grammar
    """
    if not isinstance(text, str):
        raise MalformedTimestamp(text)
    match = _LOCAL_DATE_TIME.fullmatch(text)
    if not match:
        raise MalformedTimestamp(text)

    minutes, seconds, fraction = match.groups()
    try:
        dt = datetime.strptime(f"{minutes}:{seconds or '00'}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        raise MalformedTimestamp(text) from None

    millis = int((fraction or "0").ljust(3, "0")[:3])
    # naive datetime -> timestamp() dùng timezone local
    return int(dt.timestamp()) * 1000 + millis
