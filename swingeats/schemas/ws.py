"""
SwingEats — WebSocket message schemas

Envelope: {"type": str, "data": any}
"""
from typing import Any, Literal

from pydantic import BaseModel, Field

from swingeats.schemas.order import CamelModel


class WSMessage(BaseModel):
    type: str = Field(..., min_length=1)
    data: Any = None


class RegisterData(CamelModel):
    client_type: Literal["guest", "server", "kitchen"]
    bay_id: int | None = None


class SubscribeData(CamelModel):
    bay_id: int
