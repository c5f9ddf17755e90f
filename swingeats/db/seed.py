"""
SwingEats — Default data

Bays are numbered floor by floor (floor 1 holds 1..33, floor 2 holds 34..66, …).
Seeding only runs against an empty store.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from swingeats.core.config import get_settings
from swingeats.models import Bay, BayStatus, MenuItem

settings = get_settings()
logger = logging.getLogger(__name__)

# (name, category, price cents, station, prep seconds)
DEFAULT_MENU: list[tuple[str, str, int, str, int]] = [
    ("Boudin Balls", "Shareables", 1250, "Fry", 420),
    ("504 Wings", "Shareables", 1400, "Fry", 540),
    ("Cajun Crawfish Pies", "Shareables", 1300, "Fry", 480),
    ("Smoked Tuna Dip with Cajun Fried Crackers", "Shareables", 1500, "Cold", 300),
    ("Pineapple Fried Shrimp with Sriracha Sesame Salad", "Shareables", 1400, "Fry", 480),
    ("Clubhouse Nachos", "Shareables", 1550, "Saute", 540),
    ("Just Chips and Salsa", "Shareables", 600, "Cold", 180),
    ("Just Chips and Queso", "Shareables", 950, "Saute", 240),
    ("The Hangover", "Smashburgers", 1800, "FlatTop", 660),
    ("The Classic Ride", "Smashburgers", 1700, "FlatTop", 600),
    ("Electric Blue", "Smashburgers", 1850, "FlatTop", 660),
    ("Impossible Burger", "Smashburgers", 1700, "FlatTop", 600),
    ('504 12" Pizza', "Pizza & Flatbreads", 1700, "PizzaOven", 900),
    ("Cheesy Garlic Bread", "Pizza & Flatbreads", 1250, "PizzaOven", 540),
    ("Crazy Cajun Flatbread", "Pizza & Flatbreads", 2250, "PizzaOven", 780),
    ("Barbecue Chicken Pizza", "Pizza & Flatbreads", 2100, "PizzaOven", 900),
    ("Street Party Tacos 'Al Pastor'", "Handhelds", 1600, "Saute", 600),
    ("Crispy Fried Chicken Tenders", "Handhelds", 1600, "Fry", 540),
    ("Steak Frites", "Entrées & Mains", 3800, "FlatTop", 1200),
    ("Shrimp Monique", "Entrées & Mains", 2400, "Saute", 900),
    ("Gulf Catch Creole", "Entrées & Mains", 2650, "FlatTop", 960),
    ("Golden Fried Seafood Platter", "Entrées & Mains", 2300, "Fry", 780),
    ("Sand Wedge", "Salads & Soups", 1300, "Cold", 300),
    ("Classic Caesar Salad", "Salads & Soups", 1200, "Cold", 300),
    ("Chicken-Andouille Gumbo (Cup)", "Salads & Soups", 800, "Boil", 480),
    ("Chicken-Andouille Gumbo (Bowl)", "Salads & Soups", 1200, "Boil", 600),
    ("Garlic Grilled Vegetables", "Sides", 700, "FlatTop", 360),
    ("Crispy Kettle Fries", "Sides", 600, "Fry", 360),
    ("House Green Salad", "Sides", 800, "Cold", 240),
    ("The Big Kid Burger", "Kids", 1200, "FlatTop", 540),
    ("Fried Chicken Tenders (Kids)", "Kids", 1200, "Fry", 480),
    ("On the Green (Key Lime Pie)", "Desserts", 800, "Cold", 240),
    ("Very Berry Cheesecake", "Desserts", 900, "Cold", 240),
    ("Pecan Chocolate Chip Bread Pudding", "Desserts", 1200, "Oven", 600),
]


def default_bays(floors: int, per_floor: int) -> list[Bay]:
    return [
        Bay(number=(floor - 1) * per_floor + n, floor=floor, status=BayStatus.EMPTY)
        for floor in range(1, floors + 1)
        for n in range(1, per_floor + 1)
    ]


async def seed_defaults(session: AsyncSession) -> bool:
    """Insert bays and the menu if the store has none. Returns True if it seeded."""
    bay_count = (await session.execute(select(func.count(Bay.id)))).scalar_one()
    menu_count = (await session.execute(select(func.count(MenuItem.id)))).scalar_one()
    if bay_count and menu_count:
        return False

    if not bay_count:
        session.add_all(default_bays(settings.BAY_FLOORS, settings.BAYS_PER_FLOOR))
    if not menu_count:
        session.add_all(
            MenuItem(
                name=name,
                description=f"Delicious {name}",
                category=category,
                price=price,
                station=station,
                prep_seconds=prep,
                active=True,
            )
            for name, category, price, station, prep in DEFAULT_MENU
        )
    await session.commit()
    logger.info("Seeded default data (bays: %s, menu: %s)", not bay_count, not menu_count)
    return True
