from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from .db import Base

TABLE_TYPES = ("regular", "vip", "special")
TABLE_STATUSES = ("available", "occupied", "reserved")
ORDER_STATUSES = ("active", "completed", "cancelled")


class Table(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False, default="regular")
    status = Column(String(20), nullable=False, default="available")


class MenuCollection(Base):
    __tablename__ = "menu_collections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(String(40), nullable=False)

    items = relationship("MenuItem", back_populates="collection")


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    price = Column(Integer, nullable=False)
    category = Column(String(80), nullable=False)
    image_url = Column(String(500), nullable=True)
    available = Column(Boolean, default=True, nullable=False)
    menu_collection_id = Column(
        Integer, ForeignKey("menu_collections.id"), nullable=False, index=True
    )

    collection = relationship("MenuCollection", back_populates="items")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        # one open tab per table
        Index(
            "uq_orders_active_table",
            "table_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(Integer, nullable=False, index=True)
    table_name = Column(String(120), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    total = Column(Integer, nullable=False, default=0)
    created_at = Column(String(40), nullable=False)
    completed_at = Column(String(40), nullable=True)
    updated_at = Column(String(40), nullable=False)
    note = Column(Text, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id = Column(
        Integer, ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True
    )
    menu_item_name = Column(String(120), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")


class Bill(Base):
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    table_id = Column(Integer, nullable=False)
    table_name = Column(String(120), nullable=False)
    total_amount = Column(Integer, nullable=False)
    payment_method = Column(String(20), nullable=False)
    created_at = Column(String(40), nullable=False, index=True)
    discount_amount = Column(Integer, nullable=False, default=0)
