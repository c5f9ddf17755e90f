"""
SwingEats — Bay model

[CONFIG DATA] — created once by the seed step; only ``status`` changes afterwards,
and only as a side effect of order status changes.
"""
from enum import Enum as PyEnum
from sqlalchemy import Integer, Enum
from sqlalchemy.orm import Mapped, mapped_column
from swingeats.db.database import Base


class BayStatus(str, PyEnum):
    EMPTY = "empty"
    OCCUPIED = "occupied"
    ACTIVE = "active"
    FLAGGED = "flagged"
    ALERT = "alert"


class Bay(Base):
    __tablename__ = "bays"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[int] = mapped_column(Integer, unique=True, index=True, nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[BayStatus] = mapped_column(
        Enum(BayStatus, name="bay_status", values_callable=lambda e: [m.value for m in e]),
        default=BayStatus.EMPTY,
        nullable=False,
    )
