from pydantic import Field
from typing import List, Optional

from models.base import CamelModel


class OrderItemIn(CamelModel):
    id: str
    quantity: int = Field(..., gt=0)
    special_instructions: Optional[str] = None


class OrderCreate(CamelModel):
    vendor_id: str
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    items: List[OrderItemIn] = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    delivery_notes: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: str
