from __future__ import annotations

import hashlib
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from .errors import InvalidInput
from .models import Category, Task, User
from .network import check_cost

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS categories (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS tasks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id     INTEGER NOT NULL,
    name         TEXT NOT NULL,
    description  TEXT NOT NULL DEFAULT '',
    deadline     TEXT, -- ISO date: YYYY-MM-DD (nullable)
    priority     INTEGER, -- 1..5 (nullable)
    cost         REAL NOT NULL DEFAULT 0 CHECK (cost >= 0),
    category_id  INTEGER,
    FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner_id);
CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category_id);
"""

TASK_SELECT = """
SELECT t.*,
       u.email AS owner_email, u.password_hash AS owner_password_hash,
       c.name AS category_name
FROM tasks t
JOIN users u ON u.id = t.owner_id
LEFT JOIN categories c ON c.id = t.category_id
"""


@contextmanager
def connect(db_path: Path) -> Iterator[sqlite3.Connection]:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: Path) -> None:
    with connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
    logger.debug("Schema ready at %s", db_path)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def check_priority(priority: Optional[int]) -> Optional[int]:
    if priority is None:
        return None
    if not 1 <= int(priority) <= 5:
        raise InvalidInput(f"Invalid priority {priority!r}: must be between 1 and 5.")
    return int(priority)


def parse_deadline(text: Optional[str]) -> Optional[date]:
    if text is None or text == "":
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidInput(f"Invalid deadline '{text}'. Use YYYY-MM-DD.") from e


def _row_to_user(row: sqlite3.Row) -> User:
    return User(id=int(row["id"]), email=str(row["email"]), password_hash=str(row["password_hash"]))


def _row_to_category(row: sqlite3.Row) -> Category:
    return Category(id=int(row["id"]), name=str(row["name"]))


def _row_to_task(row: sqlite3.Row) -> Task:
    category = None
    if row["category_id"] is not None:
        category = Category(id=int(row["category_id"]), name=str(row["category_name"]))
    return Task(
        id=int(row["id"]),
        name=str(row["name"]),
        description=str(row["description"]),
        owner=User(
            id=int(row["owner_id"]),
            email=str(row["owner_email"]),
            password_hash=str(row["owner_password_hash"]),
        ),
        cost=float(row["cost"]),
        deadline=parse_deadline(row["deadline"]),
        priority=None if row["priority"] is None else int(row["priority"]),
        category=category,
    )


def add_user(db_path: Path, *, email: str, password: str) -> int:
    with connect(db_path) as conn:
        cur = conn.execute(
            "INSERT INTO users (email, password_hash) VALUES (?, ?)",
            (email, hash_password(password)),
        )
        return int(cur.lastrowid)


def get_user(db_path: Path, user_id: int) -> Optional[User]:
    with connect(db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None


def list_users(db_path: Path) -> list[User]:
    with connect(db_path) as conn:
        rows = conn.execute("SELECT * FROM users ORDER BY id ASC").fetchall()
        return [_row_to_user(r) for r in rows]


def add_category(db_path: Path, name: str) -> int:
    with connect(db_path) as conn:
        cur = conn.execute("INSERT INTO categories (name) VALUES (?)", (name,))
        return int(cur.lastrowid)


def get_category(db_path: Path, category_id: int) -> Optional[Category]:
    with connect(db_path) as conn:
        row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
        return _row_to_category(row) if row else None


def list_categories(db_path: Path) -> list[Category]:
    with connect(db_path) as conn:
        rows = conn.execute("SELECT * FROM categories ORDER BY id ASC").fetchall()
        return [_row_to_category(r) for r in rows]


def add_task(
    db_path: Path,
    *,
    owner_id: int,
    name: str,
    description: str = "",
    deadline: Optional[date] = None,
    priority: Optional[int] = None,
    cost: float = 0.0,
    category_id: Optional[int] = None,
) -> int:
    cost = check_cost(cost)
    priority = check_priority(priority)
    deadline_text = deadline.isoformat() if deadline else None

    with connect(db_path) as conn:
        cur = conn.execute(
            """
            INSERT INTO tasks (owner_id, name, description, deadline, priority, cost, category_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (owner_id, name, description, deadline_text, priority, cost, category_id),
        )
        return int(cur.lastrowid)


def get_task(db_path: Path, task_id: int) -> Optional[Task]:
    with connect(db_path) as conn:
        row = conn.execute(TASK_SELECT + " WHERE t.id = ?", (task_id,)).fetchone()
        return _row_to_task(row) if row else None


def list_tasks(db_path: Path, owner_id: Optional[int] = None) -> list[Task]:
    with connect(db_path) as conn:
        if owner_id is not None:
            rows = conn.execute(
                TASK_SELECT + " WHERE t.owner_id = ? ORDER BY t.id ASC", (owner_id,)
            ).fetchall()
        else:
            rows = conn.execute(TASK_SELECT + " ORDER BY t.id ASC").fetchall()
        return [_row_to_task(r) for r in rows]


def _update_task(db_path: Path, task_id: int, column: str, value: object) -> bool:
    with connect(db_path) as conn:
        cur = conn.execute(f"UPDATE tasks SET {column} = ? WHERE id = ?", (value, task_id))
        return cur.rowcount > 0


def set_category(db_path: Path, task_id: int, category_id: Optional[int]) -> bool:
    if category_id is not None and get_category(db_path, category_id) is None:
        return False
    return _update_task(db_path, task_id, "category_id", category_id)


def set_deadline(db_path: Path, task_id: int, deadline: Optional[date]) -> bool:
    return _update_task(db_path, task_id, "deadline", deadline.isoformat() if deadline else None)


def set_priority(db_path: Path, task_id: int, priority: Optional[int]) -> bool:
    return _update_task(db_path, task_id, "priority", check_priority(priority))


def load_graph_inputs(db_path: Path) -> Tuple[Dict[int, Task], Dict[int, User]]:
    """
    In-memory collections for the traversal algorithms: every task and every
    user, keyed by id, in id order.
    """
    tasks = {t.id: t for t in list_tasks(db_path)}
    users = {u.id: u for u in list_users(db_path)}
    return tasks, users


def export_json(db_path: Path) -> dict:
    def task_to_dict(t: Task) -> dict:
        return {
            "id": t.id,
            "owner_id": t.owner.id,
            "name": t.name,
            "description": t.description,
            "deadline": t.deadline.isoformat() if t.deadline else None,
            "priority": t.priority,
            "cost": t.cost,
            "category_id": t.category.id if t.category else None,
        }

    return {
        "users": [{"id": u.id, "email": u.email, "password_hash": u.password_hash} for u in list_users(db_path)],
        "categories": [{"id": c.id, "name": c.name} for c in list_categories(db_path)],
        "tasks": [task_to_dict(t) for t in list_tasks(db_path)],
    }


def import_json(db_path: Path, data: dict) -> None:
    init_db(db_path)
    with connect(db_path) as conn:
        conn.execute("DELETE FROM tasks")
        conn.execute("DELETE FROM categories")
        conn.execute("DELETE FROM users")

        for u in data.get("users", []):
            conn.execute(
                "INSERT INTO users (id, email, password_hash) VALUES (?, ?, ?)",
                (int(u["id"]), u["email"], u["password_hash"]),
            )

        for c in data.get("categories", []):
            conn.execute("INSERT INTO categories (id, name) VALUES (?, ?)", (int(c["id"]), c["name"]))

        for t in data.get("tasks", []):
            deadline = parse_deadline(t.get("deadline"))
            conn.execute(
                """
                INSERT INTO tasks (id, owner_id, name, description, deadline, priority, cost, category_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(t["id"]),
                    int(t["owner_id"]),
                    t["name"],
                    t.get("description", ""),
                    deadline.isoformat() if deadline else None,
                    check_priority(t.get("priority")),
                    check_cost(t.get("cost", 0.0)),
                    t.get("category_id"),
                ),
            )
    logger.info(
        "Imported %d users, %d categories, %d tasks",
        len(data.get("users", [])),
        len(data.get("categories", [])),
        len(data.get("tasks", [])),
    )
