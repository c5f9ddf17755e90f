"""
SwingEats — Background scheduler (kitchen timers)

Two independent poll loops running as asyncio tasks next to the API:
  - cooking sweep (COOKING_SWEEP_INTERVAL_SECONDS): finds COOKING items whose
    predicted ready time has passed and surfaces them as ready checks. They are
    NOT marked ready and nothing is broadcast; a cook confirms with mark_ready.
  - dining sweep (DINING_SWEEP_INTERVAL_SECONDS): DINING orders older than
    DINING_DWELL_SECONDS move to PAID and are published through the hub.

Each tick opens its own session. A failing tick is logged and the loop carries on.
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swingeats.core import timing
from swingeats.core.config import get_settings
from swingeats.schemas.order import OrderItemOut, OrderOut
from swingeats.services.hub import NotificationHub
from swingeats.services.lifecycle import OrderLifecycle

settings = get_settings()
logger = logging.getLogger(__name__)


class KitchenScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hub: NotificationHub,
        clock: Callable[[], datetime] = timing.utcnow,
        cooking_interval: float | None = None,
        dining_interval: float | None = None,
    ):
        self.session_factory = session_factory
        self.hub = hub
        self.clock = clock
        self.cooking_interval = cooking_interval or settings.COOKING_SWEEP_INTERVAL_SECONDS
        self.dining_interval = dining_interval or settings.DINING_SWEEP_INTERVAL_SECONDS
        self.ready_checks: dict[int, OrderItemOut] = {}
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "Starting kitchen timers (cooking every %.1fs, dining every %.1fs)",
            self.cooking_interval, self.dining_interval,
        )
        self._tasks = [
            asyncio.create_task(self._run_every(self.cooking_interval, self.sweep_cooking_items), name="cooking-sweep"),
            asyncio.create_task(self._run_every(self.dining_interval, self.sweep_dining_orders), name="dining-sweep"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Kitchen timers stopped")

    async def _run_every(self, interval: float, sweep: Callable[[], Awaitable]) -> None:
        while True:
            try:
                await sweep()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s tick failed", sweep.__name__)
            await asyncio.sleep(interval)

    # ── Sweeps ────────────────────────────────────────────────────────────────
    async def sweep_cooking_items(self) -> list[OrderItemOut]:
        async with self.session_factory() as session:
            lifecycle = OrderLifecycle(session, self.hub, clock=self.clock)
            candidates = await lifecycle.auto_flip_candidates()

        current = {item.id: item for item in candidates}
        for item_id, item in current.items():
            if item_id not in self.ready_checks:
                logger.info(
                    "Order item %s (order %s, %s) passed its predicted ready time; awaiting kitchen confirmation",
                    item_id, item.order_id, item.station or "main",
                )
        self.ready_checks = current
        return candidates

    async def sweep_dining_orders(self) -> list[OrderOut]:
        async with self.session_factory() as session:
            lifecycle = OrderLifecycle(session, self.hub, clock=self.clock)
            promoted = await lifecycle.promote_dining_orders()
        if promoted:
            logger.info("Moved %d dining order(s) to PAID", len(promoted))
        return promoted


_scheduler: KitchenScheduler | None = None


def get_scheduler() -> KitchenScheduler | None:
    return _scheduler


def set_scheduler(scheduler: KitchenScheduler | None) -> None:
    global _scheduler
    _scheduler = scheduler
