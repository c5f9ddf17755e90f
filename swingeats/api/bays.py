"""
SwingEats — Bays API

Bay status is read-only here; it follows the orders placed on the bay.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from swingeats.api.deps import get_lifecycle
from swingeats.core.errors import ValidationError
from swingeats.db.database import get_db
from swingeats.db.storage import Storage
from swingeats.models import BayStatus
from swingeats.schemas.order import BayOut, OrderOut
from swingeats.services.lifecycle import OrderLifecycle

router = APIRouter(prefix="/api/bays", tags=["bays"])


@router.get("", response_model=list[BayOut])
async def list_bays(
    floor: int | None = Query(None, ge=1, description="Filter by floor"),
    status: str = Query("all", description="Bay status, or \"all\""),
    db: AsyncSession = Depends(get_db),
):
    if status == "all":
        wanted = None
    else:
        try:
            wanted = BayStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown bay status '{status}'.")
    return [BayOut.from_row(b) for b in await Storage(db).get_bays(floor=floor, status=wanted)]


@router.get("/{number}", response_model=BayOut)
async def get_bay(number: int, db: AsyncSession = Depends(get_db)):
    bay = await Storage(db).get_bay_by_number(number)
    if bay is None:
        raise HTTPException(status_code=404, detail="Bay not found.")
    return BayOut.from_row(bay)


@router.get("/{number}/orders", response_model=list[OrderOut])
async def list_bay_orders(number: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """Every order placed on the bay, including served and paid ones."""
    bay = await lifecycle.storage.get_bay_by_number(number)
    if bay is None:
        raise HTTPException(status_code=404, detail="Bay not found.")
    return await lifecycle.get_bay_orders(bay.id)
