"""
Order schemas, giữ tên field camelCase giống persistence service.
"""
from typing import Optional, List
from pydantic import BaseModel, Field


class Order(BaseModel):
    """
    Một order đã hoàn tất.
    """
    id: int = Field(..., description="Order ID")
    time: str = Field(..., description="ISO local date-time, ví dụ 2020-01-02T10:00:00")
    user_id: Optional[int] = Field(None, alias="userId", description="User ID")
    total_price_in_cents: Optional[int] = Field(None, alias="totalPriceInCents")
    address_name: Optional[str] = Field(None, alias="addressName")

    class Config:
        populate_by_name = True


class OrderItem(BaseModel):
    """
    Một dòng sản phẩm trong order.
    """
    id: Optional[int] = Field(None, description="OrderItem ID")
    order_id: int = Field(..., alias="orderId", description="Order ID (foreign key)")
    product_id: Optional[int] = Field(None, alias="productId", description="Product ID")
    quantity: int = Field(1, description="Quantity")
    unit_price_in_cents: Optional[int] = Field(None, alias="unitPriceInCents")

    class Config:
        populate_by_name = True


class TrainResponse(BaseModel):
    """
    Response schema cho GET /train.
    """
    success: bool = Field(..., description="Cycle có thành công không")
    message: str = Field(..., description="Thông báo")
    duration_ms: int = Field(..., description="Thời gian chạy cycle (ms)")
    record_count: int = Field(..., description="Số orders + order items đã dùng để train, -1 nếu fail")
    cutoff: Optional[int] = Field(None, description="Cutoff hiện tại (epoch ms)")


class RecommendRequest(BaseModel):
    """
    Request schema cho POST /recommend.
    """
    items: List[OrderItem] = Field(default_factory=list, description="Items hiện tại (ví dụ trong cart)")
    uid: Optional[int] = Field(None, description="User ID")


class RecommendResponse(BaseModel):
    """
    Response schema cho POST /recommend.
    """
    product_ids: List[int] = Field(..., description="Recommended product IDs")
    total: int = Field(..., description="Số lượng recommendations")
