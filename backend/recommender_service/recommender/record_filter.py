"""
Record Filter
=============

Loại bỏ orders mới hơn cutoff và order items không còn order tương ứng.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from recommender_service.recommender.time_codec import parse_timestamp
from recommender_service.web.schemas.order import Order, OrderItem

logger = logging.getLogger(__name__)


def filter_records(
    order_items: Sequence[OrderItem],
    orders: Sequence[Order],
    cutoff: Optional[int]
) -> Tuple[List[OrderItem], List[Order]]:
    """
    Lọc orders và order items theo cutoff. Không thay đổi input.

    Args:
        order_items: Tất cả order items
        orders: Tất cả orders
        cutoff: Epoch milliseconds, None = không lọc

    Returns:
        Tuple (order_items, orders) còn lại, giữ nguyên thứ tự ban đầu

    Raises:
        MalformedTimestamp: nếu một order có timestamp không parse được
    """
    if cutoff is None:
        return list(order_items), list(orders)

    # order đúng bằng cutoff vẫn được giữ
    kept_orders = [order for order in orders if parse_timestamp(order.time) <= cutoff]

    kept_ids = {order.id for order in kept_orders}
    kept_items = [item for item in order_items if item.order_id in kept_ids]

    removed_orders = len(orders) - len(kept_orders)
    removed_items = len(order_items) - len(kept_items)
    if removed_orders or removed_items:
        logger.info(
            f"Filtered by cutoff {cutoff}: removed {removed_orders} orders "
            f"and {removed_items} order items"
        )

    return kept_items, kept_orders
