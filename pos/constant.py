"""Editable static menu and floor configuration."""

from __future__ import annotations

BRANCHES: dict[str, str] = {
    "1": "Douala - Akwa",
    "2": "Yaounde - Bastos",
}

# Canonical menu metadata consumed by pos.data (which wraps these into MenuItem dataclass instances).
# Prices are whole FCFA. A branch_id of None means the dish is served at every branch.
MENU_META_BY_ID: dict[str, dict[str, object]] = {
    "ndole": {"name": "Ndole", "category": "Mains", "price": 3500, "branch_id": None},
    "poulet_dg": {
        "name": "Poulet DG",
        "category": "Mains",
        "price": 5000,
        "branch_id": None,
        "variations": [
            {"id": "half", "name": "Half", "price": 5000},
            {"id": "whole", "name": "Whole", "price": 9000},
        ],
    },
    "eru": {"name": "Eru", "category": "Mains", "price": 3000, "branch_id": None},
    "poisson_braise": {
        "name": "Poisson Braise",
        "category": "Grill",
        "price": 4500,
        "branch_id": None,
        "variations": [
            {"id": "small", "name": "Small", "price": 4500},
            {"id": "large", "name": "Large", "price": 7000},
        ],
    },
    "soya": {"name": "Soya Skewers", "category": "Grill", "price": 1500, "branch_id": None},
    "koki": {"name": "Koki", "category": "Sides", "price": 1000, "branch_id": "1"},
    "miondo": {"name": "Miondo", "category": "Sides", "price": 500, "branch_id": None},
    "plantain": {"name": "Fried Plantain", "category": "Sides", "price": 1000, "branch_id": None},
    "puff_puff": {"name": "Puff-Puff", "category": "Desserts", "price": 500, "branch_id": None},
    "folere": {"name": "Folere Juice", "category": "Drinks", "price": 1000, "branch_id": None},
    "ginger_juice": {"name": "Ginger Juice", "category": "Drinks", "price": 1000, "branch_id": None},
    "mineral_water": {"name": "Mineral Water", "category": "Drinks", "price": 500, "branch_id": None},
    "achu": {"name": "Achu", "category": "Mains", "price": 4000, "branch_id": "2", "available": False},
}

TABLES_BY_BRANCH: dict[str, list[dict[str, object]]] = {
    "1": [
        {"id": "t1", "number": 1, "seats": 2, "status": "available"},
        {"id": "t2", "number": 2, "seats": 4, "status": "available"},
        {"id": "t3", "number": 3, "seats": 4, "status": "occupied"},
        {"id": "t4", "number": 4, "seats": 6, "status": "available"},
        {"id": "t5", "number": 5, "seats": 8, "status": "reserved"},
    ],
    "2": [
        {"id": "t6", "number": 1, "seats": 2, "status": "available"},
        {"id": "t7", "number": 2, "seats": 4, "status": "cleaning"},
        {"id": "t8", "number": 3, "seats": 6, "status": "available"},
    ],
}
