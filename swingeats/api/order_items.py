"""
SwingEats — Order item transitions (kitchen / server actions)
"""
from fastapi import APIRouter, Depends

from swingeats.api.deps import get_lifecycle
from swingeats.schemas.order import OrderItemOut
from swingeats.services.lifecycle import OrderLifecycle

router = APIRouter(prefix="/api/order-items", tags=["order-items"])


@router.post("/{item_id}/fire", response_model=OrderItemOut)
async def fire_item(item_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """NEW → COOKING. Starts the item's cook timer."""
    return await lifecycle.fire_item(item_id)


@router.post("/{item_id}/ready", response_model=OrderItemOut)
async def mark_ready(item_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """COOKING → READY, recording when the cook actually called it."""
    return await lifecycle.mark_ready(item_id)


@router.post("/{item_id}/deliver", response_model=OrderItemOut)
async def mark_delivered(item_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return await lifecycle.mark_delivered(item_id)


@router.post("/{item_id}/void", response_model=OrderItemOut)
async def void_item(item_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return await lifecycle.void_item(item_id)
