"""
Popularity Trainer
==================

Training collaborator đơn giản: đếm số lượng mua của mỗi product trong
các order items đã được lọc theo cutoff, recommend các products phổ biến nhất.
"""

import logging
from typing import List, Optional, Protocol, Sequence

import polars as pl

from recommender_service.errors import TrainingError
from recommender_service.web.schemas.order import Order, OrderItem

logger = logging.getLogger(__name__)


class Trainer(Protocol):
    """Interface mà SyncDriver dùng để hand-off dữ liệu đã lọc."""

    def train(self, order_items: Sequence[OrderItem], orders: Sequence[Order]) -> None:
        ...


class PopularityTrainer:
    """
    Recommend theo độ phổ biến (tổng quantity đã bán của product).
    """

    def __init__(self):
        self._popularity: Optional[pl.DataFrame] = None

    @property
    def is_ready(self) -> bool:
        return self._popularity is not None

    def train(self, order_items: Sequence[OrderItem], orders: Sequence[Order]) -> None:
        """
        Train lại model từ order items đã lọc.

        Args:
            order_items: Order items còn lại sau khi lọc
            orders: Orders còn lại sau khi lọc (chỉ dùng để log)
        """
        df = pl.DataFrame(
            {
                "product_id": [item.product_id for item in order_items],
                "quantity": [item.quantity for item in order_items],
            },
            schema={"product_id": pl.Int64, "quantity": pl.Int64},
        )

        # Sort theo count giảm dần, product_id tăng dần để kết quả ổn định
        self._popularity = (
            df.drop_nulls("product_id")
            .group_by("product_id")
            .agg(pl.col("quantity").sum().alias("purchase_count"))
            .sort(["purchase_count", "product_id"], descending=[True, False])
        )

        logger.info(
            f"Trained popularity model: {len(self._popularity)} products "
            f"from {len(order_items)} order items in {len(orders)} orders"
        )

    def recommend(
        self,
        current_items: Sequence[OrderItem],
        uid: Optional[int] = None,
        max_recommendations: int = 10
    ) -> List[int]:
        """
        Lấy top products phổ biến, bỏ qua products đã có trong current_items.

        Args:
            current_items: Items user đang xem / có trong cart
            uid: User ID (popularity model không dùng)
            max_recommendations: Số lượng tối đa

        Returns:
            List of product IDs

        Raises:
            TrainingError: nếu model chưa được train
        """
        if self._popularity is None:
            raise TrainingError("The recommender is not trained yet")

        exclude = [item.product_id for item in current_items if item.product_id is not None]
        ranked = self._popularity
        if exclude:
            ranked = ranked.filter(~pl.col("product_id").is_in(exclude))
        return ranked["product_id"].head(max_recommendations).to_list()
