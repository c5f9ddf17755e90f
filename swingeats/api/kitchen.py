"""
SwingEats — Kitchen display helpers
"""
from fastapi import APIRouter, Depends

from swingeats.api.deps import get_lifecycle
from swingeats.schemas.order import OrderItemOut
from swingeats.services.lifecycle import OrderLifecycle

router = APIRouter(prefix="/api/kitchen", tags=["kitchen"])


@router.get("/ready-checks", response_model=list[OrderItemOut])
async def ready_checks(lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """
    COOKING items past their predicted ready time. The display prompts a cook to
    check them; they stay COOKING until someone calls /ready.
    """
    return await lifecycle.auto_flip_candidates()
