"""Runtime configuration defaults for pricing, persistence and the kitchen display."""

from __future__ import annotations

import os
from decimal import Decimal

DB_PATH = os.environ.get("POS_DB_PATH", "data/pos.db")

CURRENCY_LABEL = "FCFA"

# Single rate for every flow that prices an order.
TAX_RATE = Decimal(os.environ.get("POS_TAX_RATE", "0.075"))
SERVICE_CHARGE_RATE = Decimal("0.10")
MONEY_TOLERANCE = Decimal("0.01")

SPLIT_COUNT_MIN = 2
SPLIT_COUNT_MAX = 10

URGENT_WAIT_MINUTES = 15
ESTIMATED_PREP_MINUTES = 30
KITCHEN_REFRESH_SECONDS = float(os.environ.get("POS_KITCHEN_REFRESH_SECONDS", "60"))

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"
DEFAULT_BRANCH_ID = "1"

CARD_TERMINALS: dict[str, str] = {
    "terminal-1": "Terminal 1 (Counter)",
    "terminal-2": "Terminal 2 (Handheld)",
    "terminal-3": "Terminal 3 (Wireless)",
}

MOBILE_PROVIDERS: dict[str, str] = {
    "mtn": "MTN Mobile Money",
    "orange": "Orange Money",
}
