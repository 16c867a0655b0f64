"""
Persistence Client
==================

Đọc toàn bộ order items và orders (không phân trang) để train:
- RestPersistenceClient: qua REST API của persistence service (aiohttp)
- DatabasePersistenceClient: đọc trực tiếp database (async SQLAlchemy)
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, List, Tuple, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from recommender_service.errors import FetchFailure
from recommender_service.web.schemas.order import Order, OrderItem

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_entities(model: Type[ModelT], payload: Any, collection: str) -> List[ModelT]:
    if not isinstance(payload, list):
        raise FetchFailure(f"Expected a list of {collection}", {"collection": collection})
    try:
        return [model.model_validate(entry) for entry in payload]
    except ValidationError as e:
        raise FetchFailure(f"Malformed {collection}: {e.error_count()} invalid fields", {"collection": collection}) from e


class RestPersistenceClient:
    """
    Đọc entities qua REST: GET {base_url}/{collection}?start=-1&max=-1
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def fetch_all(self) -> Tuple[List[OrderItem], List[Order]]:
        """
        Returns:
            Tuple (order_items, orders)

        Raises:
            FetchFailure: lỗi kết nối, status khác 200 hoặc dữ liệu không hợp lệ
        """
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            order_items = _parse_entities(OrderItem, await self._get(session, "orderitems"), "orderitems")
            logger.debug(f"Retrieved {len(order_items)} orderItems, starting retrieving of orders now.")
            orders = _parse_entities(Order, await self._get(session, "orders"), "orders")
        return order_items, orders

    async def _get(self, session: aiohttp.ClientSession, collection: str) -> Any:
        url = f"{self.base_url}/{collection}"
        try:
            async with session.get(url, params={"start": "-1", "max": "-1"}) as resp:
                if resp.status != 200:
                    raise FetchFailure(f"GET {url} returned status {resp.status}", {"collection": collection})
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FetchFailure(f"GET {url} failed: {e!r}", {"collection": collection}) from e


def normalize_database_url(url: str) -> str:
    """
    Chuẩn hóa database URL: postgresql:// -> postgresql+asyncpg://
    """
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def mask_url(url: str) -> str:
    """Mask password trong database URL để log."""
    if '@' in url:
        parts = url.split('@')
        user_pass = parts[0].split('//')[1] if '//' in parts[0] else parts[0]
        if ':' in user_pass:
            user = user_pass.split(':')[0]
            return url.replace(user_pass, f"{user}:***")
    return url


def _to_local_iso(value: Any) -> Any:
    # Cột timestamp của database -> ISO local date-time string
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            # timestamptz -> giờ local của process
            value = value.astimezone().replace(tzinfo=None)
        return value.isoformat()
    return value


class DatabasePersistenceClient:
    """
    Đọc orders và order_items trực tiếp từ database.
    """

    def __init__(self, database_url: str):
        normalized_url = normalize_database_url(database_url)
        self.engine = create_async_engine(normalized_url, echo=False, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )
        logger.info(f"🔗 Persistence database URL: {mask_url(normalized_url)}")

    async def fetch_all(self) -> Tuple[List[OrderItem], List[Order]]:
        try:
            async with self.session_factory() as session:
                item_rows = (await session.execute(text("""
                    SELECT id, order_id, product_id, quantity, unit_price_in_cents
                    FROM order_items
                    ORDER BY id
                """))).fetchall()
                order_rows = (await session.execute(text("""
                    SELECT id, time, user_id, total_price_in_cents
                    FROM orders
                    ORDER BY id
                """))).fetchall()
        except SQLAlchemyError as e:
            raise FetchFailure(f"Database query failed: {e}") from e

        order_items = _parse_entities(
            OrderItem,
            [
                {
                    "id": row.id,
                    "order_id": row.order_id,
                    "product_id": row.product_id,
                    "quantity": row.quantity,
                    "unit_price_in_cents": row.unit_price_in_cents,
                }
                for row in item_rows
            ],
            "orderitems"
        )
        orders = _parse_entities(
            Order,
            [
                {
                    "id": row.id,
                    "time": _to_local_iso(row.time),
                    "user_id": row.user_id,
                    "total_price_in_cents": row.total_price_in_cents,
                }
                for row in order_rows
            ],
            "orders"
        )
        return order_items, orders

    async def close(self) -> None:
        await self.engine.dispose()
