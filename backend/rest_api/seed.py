"""
Seed data for development and testing.
Creates a demo restaurant with one branch, its tables, a small menu and one
account per staff role.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Restaurant
from rest_api.services.domain import (
    BranchService,
    MenuService,
    RestaurantService,
    StaffService,
    TableService,
)
from shared.config.constants import Roles
from shared.config.logging import get_logger

logger = get_logger(__name__)


DEMO_RESTAURANT_NAME = "Demo Bistro"
DEMO_PASSWORD = "tableflow-demo"
DEMO_TABLE_COUNT = 6

DEMO_STAFF = [
    ("owner@demo.tableflow.io", Roles.SUPERADMIN, "Olivia Owner"),
    ("admin@demo.tableflow.io", Roles.ADMIN, "Adrian Admin"),
    ("kitchen@demo.tableflow.io", Roles.KITCHEN, "Kim Kitchen"),
    ("waiter@demo.tableflow.io", Roles.WAITER, "Wes Waiter"),
]

# (name, category, price in cents)
DEMO_MENU = [
    ("Tomato Soup", "Starters", 450),
    ("Bruschetta", "Starters", 500),
    ("Margherita Pizza", "Mains", 1100),
    ("Grilled Salmon", "Mains", 1650),
    ("Tiramisu", "Desserts", 600),
    ("Lemonade", "Drinks", 300),
]


@dataclass
class SeedSummary:
    restaurant_id: int
    branch_id: int
    tables: int
    menu_items: int
    staff: list[tuple[str, str]]
    created: bool = True


def seed_demo(db: Session) -> SeedSummary:
    """
    Seed the demo restaurant.
    Idempotent: an existing demo restaurant is left untouched.
    """
    existing = db.scalar(
        select(Restaurant).where(
            Restaurant.name == DEMO_RESTAURANT_NAME,
            Restaurant.is_active.is_(True),
        )
    )
    if existing is not None:
        logger.info("Demo data already seeded, skipping", restaurant_id=existing.id)
        branch_ids = [b.id for b in existing.branches if b.is_active]
        return SeedSummary(
            restaurant_id=existing.id,
            branch_id=branch_ids[0] if branch_ids else 0,
            tables=0,
            menu_items=0,
            staff=[],
            created=False,
        )

    owner_email, _, owner_name = DEMO_STAFF[0]
    restaurant, owner = RestaurantService(db).bootstrap(
        DEMO_RESTAURANT_NAME,
        owner_email,
        DEMO_PASSWORD,
        owner_name=owner_name,
    )
    actor = (owner.id, owner.email)

    branches = BranchService(db)
    branch = branches.create({"name": "Downtown"}, restaurant.id, *actor)

    tables = TableService(db)
    for number in range(1, DEMO_TABLE_COUNT + 1):
        tables.create(
            {"branch_id": branch.id, "table_number": number, "seat_count": 4, "active": True},
            restaurant.id,
            *actor,
        )

    menu = MenuService(db)
    for name, category, price_cents in DEMO_MENU:
        menu.create(
            {"name": name, "category": category, "price_cents": price_cents, "is_available": True},
            restaurant.id,
            *actor,
        )

    staff = StaffService(db)
    accounts = [(owner_email, Roles.SUPERADMIN)]
    for email, role, display_name in DEMO_STAFF[1:]:
        user = staff.create(
            {
                "email": email,
                "password": DEMO_PASSWORD,
                "display_name": display_name,
                "role": role,
                "branch_id": branch.id,
                "permissions": [],
            },
            restaurant.id,
            *actor,
        )
        if role == Roles.ADMIN:
            branches.assign_admin(branch.id, restaurant.id, user.id, *actor)
        accounts.append((email, role))

    logger.info(
        "Demo data seeded",
        restaurant_id=restaurant.id,
        branch_id=branch.id,
        tables=DEMO_TABLE_COUNT,
        menu_items=len(DEMO_MENU),
    )
    return SeedSummary(
        restaurant_id=restaurant.id,
        branch_id=branch.id,
        tables=DEMO_TABLE_COUNT,
        menu_items=len(DEMO_MENU),
        staff=accounts,
    )
