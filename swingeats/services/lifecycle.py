"""
SwingEats — Order lifecycle engine

Item state machine:   NEW → COOKING → READY → DELIVERED
                      NEW | COOKING | READY → VOIDED
Order status is aggregated from its non-voided items after every item transition
(see derive_order_status). Direct order moves (server actions, payment sweep)
follow ORDER_TRANSITIONS.

Each operation is one transaction of read → validate → conditional write. The
conditional write makes a lost race fail with InvalidTransition instead of
applying twice. After commit the engine publishes exactly one ``ordersUpdate``
broadcast plus one bay-scoped message.
"""
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from swingeats.core import timing
from swingeats.core.config import get_settings
from swingeats.core.errors import InvalidTransition, NotFound, SwingEatsError, ValidationError
from swingeats.db.storage import Storage
from swingeats.models import (
    ACTIVE_ORDER_STATUSES,
    OPEN_ORDER_STATUSES,
    BayStatus,
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
)
from swingeats.schemas.order import BayOut, CartLine, OrderItemOut, OrderOut
from swingeats.services.hub import NotificationHub

settings = get_settings()
logger = logging.getLogger(__name__)

# ── Direct order status moves ────────────────────────────────────────────────
ORDER_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.READY:     (OrderStatus.NEW, OrderStatus.COOKING),
    OrderStatus.SERVED:    (OrderStatus.NEW, OrderStatus.COOKING, OrderStatus.READY),
    OrderStatus.DINING:    (OrderStatus.SERVED,),
    OrderStatus.PAID:      (OrderStatus.SERVED, OrderStatus.DINING),
    OrderStatus.CANCELLED: OPEN_ORDER_STATUSES,
}

# Aggregation never moves an order out of these
_STICKY_STATUSES = (OrderStatus.SERVED, OrderStatus.DINING, OrderStatus.PAID, OrderStatus.CANCELLED)


def derive_order_status(item_statuses: Iterable[ItemStatus], current: OrderStatus) -> OrderStatus:
    """
    Order status implied by its items, ignoring voided ones:
      any COOKING                          → COOKING
      all READY/DELIVERED, at least 1 READY → READY
      all DELIVERED                        → SERVED
      otherwise                            → unchanged
    An order whose items are all voided is CANCELLED.
    """
    if current in _STICKY_STATUSES:
        return current
    statuses = list(item_statuses)
    live = [s for s in statuses if s != ItemStatus.VOIDED]
    if statuses and not live:
        return OrderStatus.CANCELLED
    if not live:
        return current
    if ItemStatus.COOKING in live:
        return OrderStatus.COOKING
    if all(s in (ItemStatus.READY, ItemStatus.DELIVERED) for s in live):
        if ItemStatus.READY in live:
            return OrderStatus.READY
        return OrderStatus.SERVED
    return current


def to_wire(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


class OrderLifecycle:
    def __init__(
        self,
        session: AsyncSession,
        hub: NotificationHub,
        clock: Callable[[], datetime] = timing.utcnow,
    ):
        self.session = session
        self.storage = Storage(session)
        self.hub = hub
        self.clock = clock

    @asynccontextmanager
    async def _transaction(self):
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # ── Reads ─────────────────────────────────────────────────────────────────
    def _to_out(self, order: Order, now: datetime) -> OrderOut:
        menu = {i.menu_item_id: i.menu_item for i in order.items}
        return OrderOut.from_row(order, order.items, now, bay=order.bay, menu=menu)

    async def get_active_orders(self, now: datetime | None = None) -> list[OrderOut]:
        now = now or self.clock()
        return [self._to_out(o, now) for o in await self.storage.get_active_orders()]

    async def get_orders_by_status(self, status: OrderStatus, now: datetime | None = None) -> list[OrderOut]:
        now = now or self.clock()
        return [self._to_out(o, now) for o in await self.storage.get_orders_by_status(status)]

    async def get_order(self, order_id: int, now: datetime | None = None) -> OrderOut:
        order = await self.storage.get_order_with_items(order_id)
        if order is None:
            raise NotFound("Order", order_id)
        return self._to_out(order, now or self.clock())

    async def get_bay_orders(self, bay_id: int, now: datetime | None = None) -> list[OrderOut]:
        if await self.storage.get_bay(bay_id) is None:
            raise NotFound("Bay", bay_id)
        now = now or self.clock()
        return [self._to_out(o, now) for o in await self.storage.get_orders_by_bay(bay_id)]

    async def get_bay_snapshot(self, bay_id: int) -> dict | None:
        bay = await self.storage.get_bay(bay_id)
        if bay is None:
            return None
        orders = await self.get_bay_orders(bay_id)
        return {
            "bay": to_wire(BayOut.from_row(bay)),
            "orders": [to_wire(o) for o in orders],
            "status": bay.status.value,
        }

    async def auto_flip_candidates(self, now: datetime | None = None) -> list[OrderItemOut]:
        """
        COOKING items whose predicted ready time has passed.

        Query only: kitchen staff confirm readiness with mark_ready, so nothing is
        written or published here.
        """
        now = now or self.clock()
        items = await self.storage.get_cooking_items_due(now)
        return [OrderItemOut.from_row(i, now, i.menu_item) for i in items]

    # ── Order creation ────────────────────────────────────────────────────────
    async def create_order(
        self,
        bay_id: int,
        lines: list[CartLine],
        order_type: OrderType = OrderType.CUSTOMER,
        special_instructions: str | None = None,
    ) -> OrderOut:
        if not lines:
            raise ValidationError("Cart is empty.")
        for line in lines:
            if line.quantity < 1:
                raise ValidationError(f"Quantity for menu item {line.menu_item_id} must be positive.")

        bay = await self.storage.get_bay(bay_id)
        if bay is None:
            raise ValidationError(f"Unknown bay {bay_id}.")
        menu = await self.storage.get_menu_items_by_ids(line.menu_item_id for line in lines)
        for line in lines:
            menu_item = menu.get(line.menu_item_id)
            if menu_item is None or not menu_item.active:
                raise ValidationError(f"Unknown menu item {line.menu_item_id}.")

        now = self.clock()
        cooks = [menu[line.menu_item_id].prep_seconds or settings.DEFAULT_COOK_SECONDS for line in lines]
        expected_ready = timing.compute_expected_ready(now, cooks)
        rows = [
            {
                "menu_item_id": line.menu_item_id,
                "quantity": line.quantity,
                "notes": line.notes,
                "station": menu[line.menu_item_id].station,
                "cook_seconds": cook,
                "drop_at": timing.compute_drop_at(cook, expected_ready),
                "status": ItemStatus.NEW,
            }
            for line, cook in zip(lines, cooks)
        ]

        async with self._transaction():
            order = await self.storage.create_order(
                {
                    "bay_id": bay_id,
                    "status": OrderStatus.NEW,
                    "order_type": order_type,
                    "special_instructions": special_instructions,
                    "created_at": now,
                    "status_changed_at": now,
                    "estimated_completion_time": expected_ready,
                },
                rows,
            )
            await self.storage.update_bay_status(bay_id, BayStatus.ACTIVE)
            order_id = order.id

        logger.info("Order %s created for bay %s with %d line(s)", order_id, bay_id, len(rows))
        detail = await self.get_order(order_id, now)

        stations: dict[str, list[dict]] = defaultdict(list)
        for item in detail.items:
            stations[item.station or "main"].append(
                {"menuItemId": item.menu_item_id, "name": item.menu_item_name, "quantity": item.quantity}
            )
        await self._publish(
            bay_id,
            "order_created",
            {
                "order": to_wire(detail),
                "estimatedCompletionTime": expected_ready.isoformat(),
                "stations": dict(stations),
            },
        )
        return detail

    # ── Direct order status moves ─────────────────────────────────────────────
    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        *,
        event: str = "order_updated",
    ) -> OrderOut:
        allowed = ORDER_TRANSITIONS.get(status)
        if allowed is None:
            raise ValidationError(f"Order status '{status.value}' cannot be set directly.")

        now = self.clock()
        async with self._transaction():
            order = await self.storage.get_order(order_id)
            if order is None:
                raise NotFound("Order", order_id)
            previous = order.status
            if previous not in allowed:
                raise InvalidTransition("order", order_id, previous.value, status.value)

            fields = {"status_changed_at": now}
            if status in (OrderStatus.SERVED, OrderStatus.CANCELLED):
                fields["completed_at"] = now
            order = await self.storage.update_order_status(
                order_id, status, expected=(previous,), **fields
            )
            if status == OrderStatus.CANCELLED:
                voided = await self.storage.void_open_items(order_id)
                logger.info("Order %s cancelled, %d item(s) voided", order_id, voided)
            await self._settle_bay(order)
            bay_id = order.bay_id

        logger.info("Order %s: %s → %s", order_id, previous.value, status.value)
        detail = await self.get_order(order_id, now)
        await self._publish(bay_id, event, self._order_event(detail, previous))
        return detail

    async def promote_dining_orders(self, now: datetime | None = None) -> list[OrderOut]:
        """Payment stand-in: DINING orders past the dwell time become PAID."""
        now = now or self.clock()
        before = now - timedelta(seconds=settings.DINING_DWELL_SECONDS)
        promoted = []
        for order in await self.storage.get_orders_in_status_since(OrderStatus.DINING, before):
            try:
                promoted.append(
                    await self.update_order_status(order.id, OrderStatus.PAID, event="orderStatusUpdate")
                )
            except SwingEatsError as exc:
                logger.warning("Could not move order %s to PAID: %s", order.id, exc)
        return promoted

    async def _settle_bay(self, order: Order) -> None:
        """Re-derive the bay after one of its orders left the active set."""
        if order.status in (OrderStatus.SERVED, OrderStatus.CANCELLED):
            others = await self.storage.count_orders_on_bay(
                order.bay_id, ACTIVE_ORDER_STATUSES, exclude_order_id=order.id
            )
            if others == 0:
                await self.storage.update_bay_status(order.bay_id, BayStatus.OCCUPIED)
        elif order.status == OrderStatus.PAID:
            others = await self.storage.count_orders_on_bay(
                order.bay_id, OPEN_ORDER_STATUSES, exclude_order_id=order.id
            )
            if others == 0:
                await self.storage.update_bay_status(order.bay_id, BayStatus.EMPTY)

    # ── Item transitions ──────────────────────────────────────────────────────
    async def fire_item(self, item_id: int) -> OrderItemOut:
        return await self._transition_item(item_id, self.storage.fire_order_item)

    async def mark_ready(self, item_id: int) -> OrderItemOut:
        return await self._transition_item(item_id, self.storage.mark_order_item_ready)

    async def mark_delivered(self, item_id: int) -> OrderItemOut:
        return await self._transition_item(item_id, self.storage.mark_order_item_delivered)

    async def void_item(self, item_id: int) -> OrderItemOut:
        return await self._transition_item(item_id, lambda i, now: self.storage.void_order_item(i))

    async def _transition_item(self, item_id: int, write) -> OrderItemOut:
        now = self.clock()
        async with self._transaction():
            current = await self.storage.get_order_item(item_id)
            if current is None:
                raise NotFound("Order item", item_id)
            # one item transition per order at a time; siblings are read under the lock
            await self.storage.lock_order(current.order_id)
            item = await write(item_id, now)
            order, items = await self._recompute_order(item.order_id, now)
            bay_id = order.bay_id
            order_status = order.status

        out = OrderItemOut.from_row(item, now, item.menu_item)
        logger.info("Order item %s → %s (order %s is %s)", item_id, item.status.value, order.id, order_status.value)
        live = [i for i in items if i.status != ItemStatus.VOIDED]
        await self._publish(
            bay_id,
            "order_item_updated",
            {
                "orderId": order.id,
                "bayId": bay_id,
                "orderItem": to_wire(out),
                "orderStatus": order_status.value,
                "allItemsCompleted": bool(live) and all(i.status == ItemStatus.DELIVERED for i in live),
                "timeElapsed": timing.elapsed_minutes(order.created_at, now),
                "estimatedCompletionTime": (
                    order.estimated_completion_time.isoformat() if order.estimated_completion_time else None
                ),
            },
        )
        return out

    async def _recompute_order(self, order_id: int, now: datetime) -> tuple[Order, list[OrderItem]]:
        order = await self.storage.get_order(order_id)
        items = await self.storage.get_order_items(order_id)
        target = derive_order_status((i.status for i in items), order.status)
        if target != order.status:
            fields = {"status_changed_at": now}
            if target in (OrderStatus.SERVED, OrderStatus.CANCELLED):
                fields["completed_at"] = now
            order = await self.storage.update_order_status(
                order_id, target, expected=(order.status,), **fields
            )
            await self._settle_bay(order)
        return order, items

    # ── Publication ───────────────────────────────────────────────────────────
    @staticmethod
    def _order_event(detail: OrderOut, previous: OrderStatus) -> dict:
        finished = detail.status in (OrderStatus.READY, OrderStatus.SERVED)
        return {
            "orderId": detail.id,
            "bayId": detail.bay_id,
            "order": to_wire(detail),
            "items": [to_wire(i) for i in detail.items],
            "status": detail.status.value,
            "previousStatus": previous.value,
            "timeElapsed": detail.time_elapsed,
            "estimatedCompletionTime": (
                detail.estimated_completion_time.isoformat() if detail.estimated_completion_time else None
            ),
            "completionTime": detail.status_changed_at.isoformat() if finished and detail.status_changed_at else None,
            "isDelayed": detail.is_delayed,
        }

    async def _publish(self, bay_id: int, message_type: str, payload: dict) -> None:
        # The mutation is committed; a failed snapshot read must not undo it
        try:
            active = await self.get_active_orders()
        except SwingEatsError as exc:
            logger.warning("Skipping ordersUpdate broadcast: %s", exc)
        else:
            self.hub.broadcast("ordersUpdate", [to_wire(o) for o in active])
        self.hub.send_to_bay(bay_id, message_type, payload)
