"""
SwingEats — Persistence gateway

Typed CRUD and query operations over bays, menu items, orders and order items.

Contract:
  - collection reads return [] on no match, single reads return None
  - mutations return the refreshed row or raise NotFound
  - status writes are conditional: UPDATE ... WHERE status IN (<expected>)
    A write matching no row means another transaction moved the row first (or
    it never had an allowed status) and raises InvalidTransition.
  - nothing here commits; the caller owns the transaction
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swingeats.core.errors import InvalidTransition, NotFound
from swingeats.core.retry import with_store_retry
from swingeats.models import (
    ACTIVE_ORDER_STATUSES,
    Bay,
    BayStatus,
    ItemStatus,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
)

logger = logging.getLogger(__name__)

_ORDER_GRAPH = (
    selectinload(Order.items).selectinload(OrderItem.menu_item),
    selectinload(Order.bay),
)


class Storage:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Bays ──────────────────────────────────────────────────────────────────
    @with_store_retry()
    async def get_bays(self, floor: int | None = None, status: BayStatus | None = None) -> list[Bay]:
        query = select(Bay).order_by(Bay.number)
        if floor is not None:
            query = query.where(Bay.floor == floor)
        if status is not None:
            query = query.where(Bay.status == status)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    @with_store_retry()
    async def get_bay(self, bay_id: int) -> Bay | None:
        return await self.session.get(Bay, bay_id, populate_existing=True)

    @with_store_retry()
    async def get_bay_by_number(self, number: int) -> Bay | None:
        result = await self.session.execute(select(Bay).where(Bay.number == number))
        return result.scalar_one_or_none()

    @with_store_retry(write=True)
    async def update_bay_status(self, bay_id: int, status: BayStatus) -> Bay:
        result = await self.session.execute(
            update(Bay)
            .where(Bay.id == bay_id)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("Bay", bay_id)
        return await self.session.get(Bay, bay_id, populate_existing=True)

    # ── Menu ──────────────────────────────────────────────────────────────────
    @with_store_retry()
    async def get_menu_items(self, active_only: bool = True) -> list[MenuItem]:
        query = select(MenuItem).order_by(MenuItem.category, MenuItem.id)
        if active_only:
            query = query.where(MenuItem.active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @with_store_retry()
    async def get_menu_items_by_category(self, category: str) -> list[MenuItem]:
        result = await self.session.execute(
            select(MenuItem)
            .where(MenuItem.category == category, MenuItem.active.is_(True))
            .order_by(MenuItem.id)
        )
        return list(result.scalars().all())

    @with_store_retry()
    async def get_categories(self) -> list[str]:
        """Categories are derived from the catalog, in first-seen order."""
        result = await self.session.execute(
            select(MenuItem.category, func.min(MenuItem.id).label("first_id"))
            .where(MenuItem.active.is_(True))
            .group_by(MenuItem.category)
            .order_by("first_id")
        )
        return [row.category for row in result]

    @with_store_retry()
    async def get_menu_item_by_id(self, menu_item_id: int) -> MenuItem | None:
        return await self.session.get(MenuItem, menu_item_id)

    @with_store_retry()
    async def get_menu_items_by_ids(self, ids: Iterable[int]) -> dict[int, MenuItem]:
        ids = set(ids)
        if not ids:
            return {}
        result = await self.session.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
        return {item.id: item for item in result.scalars().all()}

    # ── Orders ────────────────────────────────────────────────────────────────
    @with_store_retry(write=True)
    async def create_order(self, order_fields: dict, lines: list[dict]) -> Order:
        """Insert an order and its items; both land in the caller's transaction."""
        order = Order(**order_fields)
        self.session.add(order)
        await self.session.flush()
        self.session.add_all([OrderItem(order_id=order.id, **line) for line in lines])
        await self.session.flush()
        return order

    @with_store_retry()
    async def get_order(self, order_id: int) -> Order | None:
        return await self.session.get(Order, order_id, populate_existing=True)

    @with_store_retry()
    async def get_order_with_items(self, order_id: int) -> Order | None:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(*_ORDER_GRAPH)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # a rollback would release the row lock, so this counts as a write
    @with_store_retry(write=True)
    async def lock_order(self, order_id: int) -> Order | None:
        """Row-lock the order until the transaction ends (no-op on SQLite)."""
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @with_store_retry()
    async def get_order_items(self, order_id: int) -> list[OrderItem]:
        result = await self.session.execute(
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .options(selectinload(OrderItem.menu_item))
            .order_by(OrderItem.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @with_store_retry()
    async def get_order_item(self, item_id: int) -> OrderItem | None:
        result = await self.session.execute(
            select(OrderItem)
            .where(OrderItem.id == item_id)
            .options(selectinload(OrderItem.menu_item))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _orders_where(self, *criteria) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(*criteria)
            .options(*_ORDER_GRAPH)
            .order_by(Order.created_at, Order.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @with_store_retry()
    async def get_active_orders(self) -> list[Order]:
        return await self._orders_where(Order.status.in_(ACTIVE_ORDER_STATUSES))

    @with_store_retry()
    async def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        return await self._orders_where(Order.status == status)

    @with_store_retry()
    async def get_orders_by_bay(self, bay_id: int) -> list[Order]:
        return await self._orders_where(Order.bay_id == bay_id)

    @with_store_retry()
    async def get_orders_in_status_since(self, status: OrderStatus, before: datetime) -> list[Order]:
        return await self._orders_where(Order.status == status, Order.status_changed_at <= before)

    @with_store_retry()
    async def count_orders_on_bay(
        self,
        bay_id: int,
        statuses: Iterable[OrderStatus],
        exclude_order_id: int | None = None,
    ) -> int:
        query = select(func.count(Order.id)).where(
            Order.bay_id == bay_id, Order.status.in_(tuple(statuses))
        )
        if exclude_order_id is not None:
            query = query.where(Order.id != exclude_order_id)
        return (await self.session.execute(query)).scalar_one()

    @with_store_retry(write=True)
    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        expected: Iterable[OrderStatus] | None = None,
        **fields,
    ) -> Order:
        query = update(Order).where(Order.id == order_id)
        if expected is not None:
            query = query.where(Order.status.in_(tuple(expected)))
        result = await self.session.execute(
            query.values(status=status, **fields).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await self.get_order(order_id)
            if current is None:
                raise NotFound("Order", order_id)
            raise InvalidTransition("order", order_id, current.status.value, status.value)
        return await self.get_order(order_id)

    # ── Order items ───────────────────────────────────────────────────────────
    @with_store_retry(write=True)
    async def transition_order_item(
        self,
        item_id: int,
        status: ItemStatus,
        expected: Iterable[ItemStatus],
        **fields,
    ) -> OrderItem:
        result = await self.session.execute(
            update(OrderItem)
            .where(OrderItem.id == item_id, OrderItem.status.in_(tuple(expected)))
            .values(status=status, **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await self.get_order_item(item_id)
            if current is None:
                raise NotFound("Order item", item_id)
            raise InvalidTransition("order item", item_id, current.status.value, status.value)
        return await self.get_order_item(item_id)

    async def fire_order_item(self, item_id: int, now: datetime) -> OrderItem:
        item = await self.get_order_item(item_id)
        if item is None:
            raise NotFound("Order item", item_id)
        if item.status != ItemStatus.NEW:
            raise InvalidTransition("order item", item_id, item.status.value, ItemStatus.COOKING.value)
        return await self.transition_order_item(
            item_id,
            ItemStatus.COOKING,
            expected=(ItemStatus.NEW,),
            fired_at=now,
            predicted_ready_at=now + timedelta(seconds=item.cook_seconds),
            station=item.station or item.menu_item.station,
        )

    async def mark_order_item_ready(self, item_id: int, now: datetime) -> OrderItem:
        # NEW is accepted for items that are ready without firing
        return await self.transition_order_item(
            item_id,
            ItemStatus.READY,
            expected=(ItemStatus.COOKING, ItemStatus.NEW),
            actual_ready_at=now,
        )

    async def mark_order_item_delivered(self, item_id: int, now: datetime) -> OrderItem:
        return await self.transition_order_item(
            item_id,
            ItemStatus.DELIVERED,
            expected=(ItemStatus.READY, ItemStatus.COOKING),
            delivered_at=now,
            completed=True,
        )

    async def void_order_item(self, item_id: int) -> OrderItem:
        return await self.transition_order_item(
            item_id,
            ItemStatus.VOIDED,
            expected=(ItemStatus.NEW, ItemStatus.COOKING, ItemStatus.READY),
        )

    @with_store_retry(write=True)
    async def void_open_items(self, order_id: int) -> int:
        result = await self.session.execute(
            update(OrderItem)
            .where(
                OrderItem.order_id == order_id,
                OrderItem.status.in_((ItemStatus.NEW, ItemStatus.COOKING, ItemStatus.READY)),
            )
            .values(status=ItemStatus.VOIDED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @with_store_retry()
    async def get_cooking_items_due(self, now: datetime) -> list[OrderItem]:
        result = await self.session.execute(
            select(OrderItem)
            .where(OrderItem.status == ItemStatus.COOKING, OrderItem.predicted_ready_at <= now)
            .options(selectinload(OrderItem.menu_item))
            .order_by(OrderItem.predicted_ready_at, OrderItem.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
