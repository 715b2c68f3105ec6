from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

TableType = Literal["regular", "vip", "special"]
TableStatus = Literal["available", "occupied", "reserved"]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class TableCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    type: TableType = "regular"


class TableStatusUpdate(CamelModel):
    status: TableStatus


class TableOut(CamelModel):
    id: int
    name: str
    type: str
    status: str


class MenuCollectionCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = True


class MenuCollectionUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


class MenuCollectionOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: str


class MenuItemCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    price: int = Field(ge=0)
    category: str = Field(min_length=1, max_length=80)
    image_url: Optional[str] = Field(default=None, max_length=500)
    available: bool = True
    menu_collection_id: int = 1


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    price: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=80)
    image_url: Optional[str] = Field(default=None, max_length=500)
    available: Optional[bool] = None
    menu_collection_id: Optional[int] = None


class MenuItemOut(CamelModel):
    id: int
    name: str
    price: int
    category: str
    image_url: Optional[str] = None
    available: bool
    menu_collection_id: int


class OrderCreate(CamelModel):
    table_id: int
    table_name: Optional[str] = Field(default=None, max_length=120)


class OrderItemCreate(CamelModel):
    menu_item_id: int = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    note: Optional[str] = Field(default=None, max_length=500)


class OrderItemUpdate(CamelModel):
    quantity: Optional[int] = Field(default=None, ge=1)
    note: Optional[str] = Field(default=None, max_length=500)


class OrderItemOut(CamelModel):
    id: int
    order_id: int
    menu_item_id: Optional[int] = None
    menu_item_name: str
    quantity: int
    unit_price: int
    total_price: int
    note: Optional[str] = None


class OrderOut(CamelModel):
    id: int
    table_id: int
    table_name: str
    status: str
    total: int
    created_at: str
    completed_at: Optional[str] = None
    updated_at: str
    note: Optional[str] = None


class OrderWithItems(OrderOut):
    items: List[OrderItemOut] = []


class NoteUpdate(CamelModel):
    note: Optional[str] = None


class CancelRequest(CamelModel):
    table_id: Optional[int] = None


class CompleteRequest(CamelModel):
    payment_method: str
    discount_amount: int = 0


class ItemToPay(CamelModel):
    order_item_id: int
    quantity: int


class PartialPaymentRequest(CamelModel):
    items_to_pay: List[ItemToPay]
    payment_method: str
    partial_discount_amount: int = 0


class BillOut(CamelModel):
    id: int
    order_id: int
    table_id: int
    table_name: str
    total_amount: int
    payment_method: str
    created_at: str
    discount_amount: int


class DailyRevenueOut(CamelModel):
    revenue: int


class TableRevenueOut(CamelModel):
    table_name: str
    order_count: int
    revenue: int
