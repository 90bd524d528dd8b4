"""Static catalog and table inventory lookups."""

from __future__ import annotations

from decimal import Decimal

from pos.constant import BRANCHES, MENU_META_BY_ID, TABLES_BY_BRANCH
from pos.models import MenuItem, MenuVariation, Table


def _build_menu_item(item_id: str, meta: dict[str, object]) -> MenuItem:
    variations = tuple(
        MenuVariation(
            variation_id=str(raw["id"]),
            name=str(raw["name"]),
            price=Decimal(str(raw["price"])),
        )
        for raw in meta.get("variations", [])  # type: ignore[union-attr]
    )
    branch_id = meta.get("branch_id")
    return MenuItem(
        item_id=item_id,
        name=str(meta["name"]),
        category=str(meta["category"]),
        price=Decimal(str(meta["price"])),
        available=bool(meta.get("available", True)),
        branch_id=str(branch_id) if branch_id is not None else None,
        variations=variations,
    )


MENU_BY_ID: dict[str, MenuItem] = {
    item_id: _build_menu_item(item_id, meta) for item_id, meta in MENU_META_BY_ID.items()
}

TABLES: list[Table] = [
    Table(
        table_id=str(raw["id"]),
        number=int(raw["number"]),  # type: ignore[call-overload]
        seats=int(raw["seats"]),  # type: ignore[call-overload]
        branch_id=branch_id,
        status=str(raw.get("status", "available")),
    )
    for branch_id, tables in TABLES_BY_BRANCH.items()
    for raw in tables
]


def menu_item(item_id: str) -> MenuItem | None:
    """Look up a catalog item by id."""
    return MENU_BY_ID.get(item_id)


def branch_name(branch_id: str) -> str:
    return BRANCHES.get(branch_id, branch_id)


def available_menu_items(
    branch_id: str | None = None,
    category: str | None = None,
    query: str = "",
) -> list[MenuItem]:
    """Menu items that can be ordered, narrowed by branch, category and a name query."""
    items = [item for item in MENU_BY_ID.values() if item.available]
    if branch_id is not None:
        items = [item for item in items if item.branch_id is None or item.branch_id == branch_id]
    if category is not None:
        items = [item for item in items if item.category == category]
    if query:
        q = query.lower()
        items = [item for item in items if q in item.name.lower()]
    return items


def menu_categories() -> list[str]:
    return sorted({item.category for item in MENU_BY_ID.values()})


def table(table_id: str) -> Table | None:
    for entry in TABLES:
        if entry.table_id == table_id:
            return entry
    return None


def available_tables(branch_id: str | None = None) -> list[Table]:
    """Tables free for a new dine-in order."""
    return [
        entry
        for entry in TABLES
        if entry.status == "available" and (branch_id is None or entry.branch_id == branch_id)
    ]
