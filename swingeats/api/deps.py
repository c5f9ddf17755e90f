"""
SwingEats — Shared route dependencies
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from swingeats.db.database import get_db
from swingeats.services.hub import NotificationHub, get_hub
from swingeats.services.lifecycle import OrderLifecycle


async def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
) -> OrderLifecycle:
    return OrderLifecycle(db, hub)
