"""
SwingEats — Order DB models

[TRANSACTIONAL DATA] — rows are never deleted; SERVED, CANCELLED and PAID orders
stay for history.
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from swingeats.db.database import Base
from swingeats.core.timing import utcnow
from swingeats.models.bay import Bay
from swingeats.models.menu import MenuItem
from swingeats.models.types import UTCDateTime


class OrderStatus(str, PyEnum):
    NEW = "NEW"
    COOKING = "COOKING"
    READY = "READY"
    SERVED = "SERVED"
    DINING = "DINING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class ItemStatus(str, PyEnum):
    NEW = "NEW"
    COOKING = "COOKING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    VOIDED = "VOIDED"


class OrderType(str, PyEnum):
    CUSTOMER = "customer"
    SERVER = "server"


# Shown on the kitchen / server boards
ACTIVE_ORDER_STATUSES = (OrderStatus.NEW, OrderStatus.COOKING, OrderStatus.READY)
# Bay still in use
OPEN_ORDER_STATUSES = ACTIVE_ORDER_STATUSES + (OrderStatus.SERVED, OrderStatus.DINING)


def _enum(enum_cls, name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bay_id: Mapped[int] = mapped_column(ForeignKey("bays.id"), index=True, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        _enum(OrderStatus, "order_status"), default=OrderStatus.NEW, index=True, nullable=False
    )
    order_type: Mapped[OrderType] = mapped_column(
        _enum(OrderType, "order_type"), default=OrderType.CUSTOMER, nullable=False
    )
    special_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    status_changed_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    estimated_completion_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    bay: Mapped[Bay] = relationship(lazy="raise")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id", lazy="raise"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True, nullable=False)
    menu_item_id: Mapped[int] = mapped_column(ForeignKey("menu_items.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    station: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[ItemStatus] = mapped_column(
        _enum(ItemStatus, "order_item_status"), default=ItemStatus.NEW, index=True, nullable=False
    )
    cook_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    drop_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    fired_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    predicted_ready_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    actual_ready_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)  # legacy
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    order: Mapped[Order] = relationship(back_populates="items", lazy="raise")
    menu_item: Mapped[MenuItem] = relationship(lazy="raise")
