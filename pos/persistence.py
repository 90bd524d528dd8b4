"""SQLite persistence for committed orders."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable

from pos.config import DB_PATH
from pos.errors import OrderNotFound, StaleOrder, ValidationError
from pos.logging import get_logger
from pos.models import Order, OrderItem, OrderStatus, OrderType, PaymentMethod, PaymentRecord, SubPayment

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"status", "completed_at", "payment_method", "payment_reference", "notes"})

_ORDER_COLUMNS = (
    "id, order_number, order_type, status, customer_name, customer_phone, table_id, "
    "delivery_address, subtotal, discount, service_charge, tax, total, branch_id, "
    "created_at, completed_at, payment_method, payment_reference, notes, version"
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (OrderStatus, PaymentMethod)):
        return value.value
    return value


class SqliteOrderStore:
    """Order store backed by one SQLite file.

    Every update bumps the row's ``version``; callers pass the version they
    last read and get StaleOrder if somebody else wrote in between.
    """

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS orders (
                    id TEXT PRIMARY KEY,
                    order_number TEXT NOT NULL UNIQUE,
                    order_type TEXT NOT NULL,
                    status TEXT NOT NULL,
                    customer_name TEXT NOT NULL,
                    customer_phone TEXT,
                    table_id TEXT,
                    delivery_address TEXT,
                    subtotal TEXT NOT NULL,
                    discount TEXT NOT NULL,
                    service_charge TEXT NOT NULL,
                    tax TEXT NOT NULL,
                    total TEXT NOT NULL,
                    branch_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    completed_at TEXT,
                    payment_method TEXT,
                    payment_reference TEXT,
                    notes TEXT,
                    version INTEGER NOT NULL DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS order_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    order_id TEXT NOT NULL,
                    line_index INTEGER NOT NULL,
                    item_id TEXT NOT NULL,
                    menu_item_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    price TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    variation TEXT,
                    notes TEXT,
                    FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS order_payments (
                    order_id TEXT PRIMARY KEY,
                    method TEXT NOT NULL,
                    amount_paid TEXT NOT NULL,
                    change TEXT NOT NULL,
                    terminal TEXT,
                    provider TEXT,
                    reference TEXT,
                    FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS order_sub_payments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    order_id TEXT NOT NULL,
                    line_index INTEGER NOT NULL,
                    method TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_order_items_order_id_line
                    ON order_items(order_id, line_index);

                CREATE INDEX IF NOT EXISTS idx_orders_branch_status
                    ON orders(branch_id, status);
                """
            )
            order_columns = {row[1] for row in conn.execute("PRAGMA table_info(orders)")}
            if "version" not in order_columns:
                conn.execute("ALTER TABLE orders ADD COLUMN version INTEGER NOT NULL DEFAULT 1")

    def add_order(self, order: Order, payment: PaymentRecord | None = None) -> Order:
        """Persist a new order with its items and optional payment record."""
        if not order.items:
            raise ValidationError("Cannot save an order without items")

        with self._connect() as conn:
            with conn:
                try:
                    conn.execute(
                        f"INSERT INTO orders ({_ORDER_COLUMNS}) VALUES ({', '.join('?' * 20)})",
                        (
                            order.order_id,
                            order.order_number,
                            order.order_type.value,
                            order.status.value,
                            order.customer_name,
                            order.customer_phone,
                            order.table_id,
                            order.delivery_address,
                            str(order.subtotal),
                            str(order.discount),
                            str(order.service_charge),
                            str(order.tax),
                            str(order.total),
                            order.branch_id,
                            _iso(order.created_at),
                            _iso(order.completed_at),
                            order.payment_method.value if order.payment_method else None,
                            order.payment_reference,
                            order.notes,
                            order.version,
                        ),
                    )
                except sqlite3.IntegrityError as exc:
                    raise ValidationError(f"Order {order.order_number} already exists") from exc

                for idx, item in enumerate(order.items):
                    conn.execute(
                        """
                        INSERT INTO order_items
                            (order_id, line_index, item_id, menu_item_id, name, price, quantity, variation, notes)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            order.order_id,
                            idx,
                            item.item_id,
                            item.menu_item_id,
                            item.name,
                            str(item.price),
                            item.quantity,
                            item.variation,
                            item.notes,
                        ),
                    )

                if payment is not None:
                    conn.execute(
                        """
                        INSERT INTO order_payments
                            (order_id, method, amount_paid, change, terminal, provider, reference)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            order.order_id,
                            payment.method.value,
                            str(payment.amount_paid),
                            str(payment.change),
                            payment.terminal,
                            payment.provider,
                            payment.reference,
                        ),
                    )
                    for idx, sub in enumerate(payment.sub_payments):
                        conn.execute(
                            "INSERT INTO order_sub_payments (order_id, line_index, method, amount) VALUES (?, ?, ?, ?)",
                            (order.order_id, idx, sub.method.value, str(sub.amount)),
                        )

        logger.info("Saved order %s (%s)", order.order_number, order.status.value)
        return order

    def update_order(self, order_id: str, fields: dict[str, Any], expected_version: int | None = None) -> Order:
        """Apply a partial update and return the stored order.

        Raises:
            ValidationError: a field outside UPDATABLE_FIELDS was given
            OrderNotFound: no such order
            StaleOrder: ``expected_version`` does not match the stored row
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update order fields: {', '.join(sorted(unknown))}")

        with self._connect() as conn:
            with conn:
                row = conn.execute("SELECT version FROM orders WHERE id = ?", (order_id,)).fetchone()
                if row is None:
                    raise OrderNotFound(f"Order {order_id} not found")
                current_version = int(row[0])
                if expected_version is not None and expected_version != current_version:
                    raise StaleOrder(
                        f"Order {order_id} was modified (version {current_version}, expected {expected_version})"
                    )

                if fields:
                    assignments = ", ".join(f"{name} = ?" for name in fields)
                    values = [_column_value(value) for value in fields.values()]
                    cur = conn.execute(
                        f"UPDATE orders SET {assignments}, version = version + 1 WHERE id = ? AND version = ?",
                        (*values, order_id, current_version),
                    )
                    if cur.rowcount != 1:
                        raise StaleOrder(f"Order {order_id} was modified concurrently")

        return self.get_order(order_id)

    def get_order(self, order_id: str) -> Order:
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ?", (order_id,)).fetchone()
            if row is None:
                raise OrderNotFound(f"Order {order_id} not found")
            return self._hydrate(conn, row)

    def find_by_number(self, order_number: str) -> Order:
        """Look an order up by its number, ignoring case."""
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                f"SELECT {_ORDER_COLUMNS} FROM orders WHERE upper(order_number) = upper(?)",
                (order_number.strip(),),
            ).fetchone()
            if row is None:
                raise OrderNotFound(f"Order {order_number} not found")
            return self._hydrate(conn, row)

    def order_number_taken(self, order_number: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM orders WHERE order_number = ?", (order_number,)).fetchone()
        return row is not None

    def list_orders(self, branch_id: str | None = None, statuses: Iterable[OrderStatus] | None = None) -> list[Order]:
        """Orders newest first, optionally narrowed by branch and status."""
        clauses: list[str] = []
        params: list[Any] = []
        if branch_id is not None:
            clauses.append("branch_id = ?")
            params.append(branch_id)
        if statuses is not None:
            wanted = [OrderStatus(status).value for status in statuses]
            if not wanted:
                return []
            clauses.append(f"status IN ({', '.join('?' * len(wanted))})")
            params.extend(wanted)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                f"SELECT {_ORDER_COLUMNS} FROM orders {where} ORDER BY created_at DESC",
                params,
            ).fetchall()
            return [self._hydrate(conn, row) for row in rows]

    def get_payment(self, order_id: str) -> PaymentRecord | None:
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM order_payments WHERE order_id = ?", (order_id,)).fetchone()
            if row is None:
                return None
            subs = conn.execute(
                "SELECT method, amount FROM order_sub_payments WHERE order_id = ? ORDER BY line_index",
                (order_id,),
            ).fetchall()
        return PaymentRecord(
            method=PaymentMethod(row["method"]),
            amount_paid=Decimal(row["amount_paid"]),
            change=Decimal(row["change"]),
            terminal=row["terminal"],
            provider=row["provider"],
            reference=row["reference"],
            sub_payments=tuple(SubPayment(PaymentMethod(sub["method"]), Decimal(sub["amount"])) for sub in subs),
        )

    def _hydrate(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Order:
        item_rows = conn.execute(
            """
            SELECT item_id, menu_item_id, name, price, quantity, variation, notes
            FROM order_items WHERE order_id = ? ORDER BY line_index
            """,
            (row["id"],),
        ).fetchall()
        items = tuple(
            OrderItem(
                item_id=item["item_id"],
                menu_item_id=item["menu_item_id"],
                name=item["name"],
                price=Decimal(item["price"]),
                quantity=int(item["quantity"]),
                variation=item["variation"],
                notes=item["notes"],
            )
            for item in item_rows
        )
        return Order(
            order_id=row["id"],
            order_number=row["order_number"],
            order_type=OrderType(row["order_type"]),
            status=OrderStatus(row["status"]),
            items=items,
            customer_name=row["customer_name"],
            customer_phone=row["customer_phone"],
            table_id=row["table_id"],
            delivery_address=row["delivery_address"],
            subtotal=Decimal(row["subtotal"]),
            discount=Decimal(row["discount"]),
            service_charge=Decimal(row["service_charge"]),
            tax=Decimal(row["tax"]),
            total=Decimal(row["total"]),
            branch_id=row["branch_id"],
            created_at=_parse_time(row["created_at"]),  # type: ignore[arg-type]
            completed_at=_parse_time(row["completed_at"]),
            payment_method=PaymentMethod(row["payment_method"]) if row["payment_method"] else None,
            payment_reference=row["payment_reference"],
            notes=row["notes"],
            version=int(row["version"]),
        )
