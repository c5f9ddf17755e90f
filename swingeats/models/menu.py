"""
SwingEats — Menu catalog model

[CONFIG DATA] — seeded at startup; catalog administration is out of scope.
"""
from sqlalchemy import Integer, String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from swingeats.db.database import Base


class MenuItem(Base):
    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # integer cents
    station: Mapped[str] = mapped_column(String(64), nullable=False, default="main")
    prep_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
