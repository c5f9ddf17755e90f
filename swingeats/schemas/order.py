"""
SwingEats — Pydantic schemas

Wire format is camelCase with integer cents / seconds and ISO-8601 UTC timestamps.
Rows are mapped here and nowhere else.
"""
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from swingeats.core import timing
from swingeats.core.config import get_settings
from swingeats.models import Bay, ItemStatus, MenuItem, Order, OrderItem, OrderStatus, OrderType

settings = get_settings()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────────────────────
class CartLine(CamelModel):
    menu_item_id: int = Field(..., examples=[11])
    quantity: int = Field(1, ge=1, le=50)
    notes: str | None = Field(None, max_length=255)


class CreateOrderRequest(CamelModel):
    bay_id: int = Field(..., ge=1, examples=[5])
    order_type: OrderType = OrderType.CUSTOMER
    special_instructions: str | None = Field(None, max_length=500)
    items: list[CartLine] = Field(..., min_length=1, max_length=50)


class StatusUpdateRequest(CamelModel):
    status: OrderStatus


# ── Catalog ───────────────────────────────────────────────────────────────────
class BayOut(CamelModel):
    id: int
    number: int
    floor: int
    status: str

    @classmethod
    def from_row(cls, bay: Bay) -> "BayOut":
        return cls(id=bay.id, number=bay.number, floor=bay.floor, status=bay.status.value)


class MenuItemOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    category: str
    price_cents: int
    prep_seconds: int
    station: str
    image_url: str | None = None
    active: bool

    @classmethod
    def from_row(cls, item: MenuItem) -> "MenuItemOut":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            category=item.category,
            price_cents=int(item.price),
            prep_seconds=int(item.prep_seconds),
            station=item.station,
            image_url=item.image_url,
            active=item.active,
        )


class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str


def category_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class MenuSectionOut(CamelModel):
    category: CategoryOut
    items: list[MenuItemOut]


# ── Orders ────────────────────────────────────────────────────────────────────
class OrderItemOut(CamelModel):
    id: int
    order_id: int
    menu_item_id: int
    menu_item_name: str | None = None
    quantity: int
    station: str | None = None
    status: ItemStatus
    cook_seconds: int
    drop_at: datetime | None = None
    seconds_until_drop: int = 0
    fired_at: datetime | None = None
    predicted_ready_at: datetime | None = None
    actual_ready_at: datetime | None = None
    ready_at: datetime | None = None  # actual if recorded, else predicted
    delivered_at: datetime | None = None
    completed: bool = False
    notes: str | None = None

    @classmethod
    def from_row(cls, item: OrderItem, now: datetime, menu_item: MenuItem | None = None) -> "OrderItemOut":
        return cls(
            id=item.id,
            order_id=item.order_id,
            menu_item_id=item.menu_item_id,
            menu_item_name=menu_item.name if menu_item is not None else None,
            quantity=item.quantity,
            station=item.station,
            status=item.status,
            cook_seconds=int(item.cook_seconds),
            drop_at=item.drop_at,
            seconds_until_drop=(
                timing.seconds_until_drop(item.drop_at, now) if item.status == ItemStatus.NEW else 0
            ),
            fired_at=item.fired_at,
            predicted_ready_at=item.predicted_ready_at,
            actual_ready_at=item.actual_ready_at,
            ready_at=item.actual_ready_at or item.predicted_ready_at,
            delivered_at=item.delivered_at,
            completed=item.completed,
            notes=item.notes,
        )


class OrderOut(CamelModel):
    id: int
    bay_id: int
    bay_number: int | None = None
    floor: int | None = None
    status: OrderStatus
    order_type: OrderType
    special_instructions: str | None = None
    created_at: datetime
    status_changed_at: datetime | None = None
    estimated_completion_time: datetime | None = None
    completed_at: datetime | None = None
    time_elapsed: int  # minutes
    is_delayed: bool
    seconds_delayed: int
    total_items: int
    items: list[OrderItemOut] = []

    @classmethod
    def from_row(
        cls,
        order: Order,
        items: list[OrderItem],
        now: datetime,
        bay: Bay | None = None,
        menu: dict[int, MenuItem] | None = None,
    ) -> "OrderOut":
        menu = menu or {}
        return cls(
            id=order.id,
            bay_id=order.bay_id,
            bay_number=bay.number if bay is not None else None,
            floor=bay.floor if bay is not None else None,
            status=order.status,
            order_type=order.order_type,
            special_instructions=order.special_instructions,
            created_at=order.created_at,
            status_changed_at=order.status_changed_at,
            estimated_completion_time=order.estimated_completion_time,
            completed_at=order.completed_at,
            time_elapsed=timing.elapsed_minutes(order.created_at, now),
            is_delayed=order_is_delayed(order, now),
            seconds_delayed=(
                timing.seconds_delayed(order.estimated_completion_time, now)
                if order.status in (OrderStatus.NEW, OrderStatus.COOKING, OrderStatus.READY)
                else 0
            ),
            total_items=sum(i.quantity for i in items if i.status != ItemStatus.VOIDED),
            items=[OrderItemOut.from_row(i, now, menu.get(i.menu_item_id)) for i in items],
        )


def order_is_delayed(order: Order, now: datetime) -> bool:
    """
    Delay is derived at read time and only for orders still in the kitchen.
    Orders carrying an estimate use the grace window; older rows without one
    fall back to ORDER_DELAY_THRESHOLD_MINUTES of elapsed time.
    """
    if order.status not in (OrderStatus.NEW, OrderStatus.COOKING, OrderStatus.READY):
        return False
    if order.estimated_completion_time is not None:
        return timing.is_delayed(order.estimated_completion_time, now)
    return timing.elapsed_minutes(order.created_at, now) > settings.ORDER_DELAY_THRESHOLD_MINUTES
