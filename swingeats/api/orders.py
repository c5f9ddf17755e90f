"""
SwingEats — Orders API

Flow:
  1. Payload validated by pydantic (400 on malformed body)
  2. OrderLifecycle validates against the store and writes in one transaction
  3. Lifecycle publishes ordersUpdate + the bay-scoped event
  4. Response carries the order read model (camelCase)
"""
from fastapi import APIRouter, Depends, status

from swingeats.api.deps import get_lifecycle
from swingeats.models import OrderStatus
from swingeats.schemas.order import CreateOrderRequest, OrderOut, StatusUpdateRequest
from swingeats.services.lifecycle import OrderLifecycle

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
async def create_order(payload: CreateOrderRequest, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """Place an order for a bay from a cart. Idempotency-Key replays are handled by middleware."""
    return await lifecycle.create_order(
        bay_id=payload.bay_id,
        lines=payload.items,
        order_type=payload.order_type,
        special_instructions=payload.special_instructions,
    )


@router.get("", response_model=list[OrderOut])
async def list_active_orders(lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """Kitchen / server board: NEW, COOKING and READY orders, oldest first."""
    return await lifecycle.get_active_orders()


@router.get("/status/{order_status}", response_model=list[OrderOut])
async def list_orders_by_status(order_status: OrderStatus, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return await lifecycle.get_orders_by_status(order_status)


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return await lifecycle.get_order(order_id)


@router.put("/{order_id}/status", response_model=OrderOut)
async def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """Server action: READY, SERVED, DINING, PAID or CANCELLED."""
    return await lifecycle.update_order_status(order_id, payload.status)
