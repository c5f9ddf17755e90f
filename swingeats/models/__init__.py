from swingeats.models.bay import Bay, BayStatus
from swingeats.models.menu import MenuItem
from swingeats.models.order import (
    ACTIVE_ORDER_STATUSES,
    OPEN_ORDER_STATUSES,
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
)
