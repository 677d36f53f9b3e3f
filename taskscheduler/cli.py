from __future__ import annotations

import argparse
import json
import logging
import random
import sqlite3
import sys
import time
from datetime import date
from pathlib import Path
from typing import Optional

from . import db
from .config import default_db_path, default_log_level, default_similarity_threshold
from .errors import InvalidInput
from .flow import FlowAlgorithm, max_flow
from .huffman import build_codes, encode
from .logging_setup import setup_logging
from .models import Task
from .mst import compute_mst, mst_edges, total_weight
from .network import category_text, check_cost, random_cost
from .similarity import find_similar_task_pairs
from .traversal import Traversal, find_similar_users

logger = logging.getLogger(__name__)


def _parse_date(d: Optional[str]) -> Optional[date]:
    try:
        return db.parse_deadline(d)
    except InvalidInput as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _parse_priority(raw: str) -> int:
    try:
        return int(db.check_priority(int(raw)))
    except (InvalidInput, ValueError) as e:
        raise argparse.ArgumentTypeError(f"Invalid priority '{raw}'. Use a number from 1 to 5.") from e


def _parse_cost(raw: str) -> float:
    try:
        return check_cost(float(raw))
    except (InvalidInput, ValueError) as e:
        raise argparse.ArgumentTypeError(f"Invalid cost '{raw}'.") from e


def _db_path_from_args(ns: argparse.Namespace) -> Path:
    if getattr(ns, "db", None):
        return Path(ns.db).expanduser().resolve()
    return default_db_path()


def _print_tasks(tasks: list[Task]) -> None:
    if not tasks:
        print("No tasks found.")
        return
    print(f"{'ID':>3}  {'P':>1}  {'DEADLINE':<10}  {'COST':>8}  {'CATEGORY':<12}  NAME")
    print("-" * 70)
    for t in tasks:
        deadline = t.deadline.isoformat() if t.deadline else ""
        prio = t.priority if t.priority is not None else "-"
        cat = t.category.name if t.category else ""
        print(f"{t.id:>3}  {prio:>1}  {deadline:<10}  {t.cost:>8.2f}  {cat:<12}  {t.name}")


def _owner_tasks(ns: argparse.Namespace, path: Path) -> Optional[list[Task]]:
    if db.get_user(path, int(ns.owner)) is None:
        print(f"User #{ns.owner} not found.", file=sys.stderr)
        return None
    return db.list_tasks(path, owner_id=int(ns.owner))


def cmd_init(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    print(f"Initialized database at: {path}")
    return 0


def cmd_user_add(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    user_id = db.add_user(path, email=ns.email, password=ns.password)
    print(f"Added user #{user_id}: {ns.email}")
    return 0


def cmd_users(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    users = db.list_users(path)
    if not users:
        print("No users found.")
    for u in users:
        print(f"{u.id:>3}  {u.email}")
    return 0


def cmd_category_add(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    category_id = db.add_category(path, ns.name)
    print(f"Added category #{category_id}: {ns.name}")
    return 0


def cmd_categories(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    categories = db.list_categories(path)
    if not categories:
        print("No categories found.")
    for c in categories:
        print(f"{c.id:>3}  {c.name}")
    return 0


def cmd_add(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    if db.get_user(path, int(ns.owner)) is None:
        print(f"User #{ns.owner} not found.", file=sys.stderr)
        return 1
    if ns.category is not None and db.get_category(path, int(ns.category)) is None:
        print(f"Category #{ns.category} not found.", file=sys.stderr)
        return 1
    task_id = db.add_task(
        path,
        owner_id=int(ns.owner),
        name=ns.name,
        description=ns.description or "",
        deadline=ns.deadline,
        priority=ns.priority,
        cost=ns.cost,
        category_id=ns.category,
    )
    print(f"Added task #{task_id}: {ns.name}")
    return 0


def cmd_list(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    owner_id = int(ns.owner) if ns.owner is not None else None
    _print_tasks(db.list_tasks(path, owner_id=owner_id))
    return 0


def cmd_categorize(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    if not db.set_category(path, int(ns.task_id), int(ns.category_id)):
        print(f"Task #{ns.task_id} or category #{ns.category_id} not found.", file=sys.stderr)
        return 1
    print(f"Task #{ns.task_id} now in category #{ns.category_id}")
    return 0


def cmd_deadline(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    if not db.set_deadline(path, int(ns.task_id), ns.deadline):
        print(f"Task #{ns.task_id} not found.", file=sys.stderr)
        return 1
    print(f"Task #{ns.task_id} deadline set to {ns.deadline.isoformat()}")
    return 0


def cmd_priority(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    if not db.set_priority(path, int(ns.task_id), ns.priority):
        print(f"Task #{ns.task_id} not found.", file=sys.stderr)
        return 1
    print(f"Task #{ns.task_id} priority set to {ns.priority}")
    return 0


def cmd_remind(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    task = db.get_task(path, int(ns.task_id))
    if task is None:
        print(f"Task #{ns.task_id} not found.", file=sys.stderr)
        return 1
    print(f"Reminder for task #{task.id} set in {ns.seconds} second(s).")
    time.sleep(ns.seconds)
    due = f" (deadline {task.deadline.isoformat()})" if task.deadline else ""
    print(f"Reminder: {task.name}{due}")
    return 0


def cmd_mst(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    tasks = _owner_tasks(ns, path)
    if tasks is None:
        return 1
    rng = random.Random(ns.seed) if ns.seed is not None else None
    result = compute_mst(tasks, cost_fn=random_cost(rng))
    if result is None:
        print("Not enough tasks to build a spanning tree (need at least 2).", file=sys.stderr)
        return 1
    print("Minimum spanning tree:")
    for p, c, w in mst_edges(result):
        print(f"  #{tasks[p].id} {tasks[p].name} -- #{tasks[c].id} {tasks[c].name}: {w:g}")
    print(f"Total weight: {total_weight(result):g}")
    return 0


def cmd_flow(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    tasks = _owner_tasks(ns, path)
    if tasks is None:
        return 1
    algorithm = FlowAlgorithm.parse(ns.algorithm)
    value = max_flow(tasks, algorithm)
    print(f"Max flow ({algorithm.value}): {value:g}")
    return 0


def cmd_similar_users(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    tasks, users = db.load_graph_inputs(path)
    method = Traversal.parse(ns.method)
    found = find_similar_users(
        tasks,
        users,
        int(ns.task_id),
        method,
        match_uncategorized=not ns.strict_categories,
    )
    if not found:
        print("No similar users found.")
        return 0
    print(f"Users with tasks in the same category ({method.value.upper()}):")
    for u in found:
        print(f"{u.id:>3}  {u.email}")
    return 0


def cmd_similar_tasks(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    tasks = _owner_tasks(ns, path)
    if tasks is None:
        return 1
    threshold = ns.threshold if ns.threshold is not None else default_similarity_threshold()
    pairs = find_similar_task_pairs(tasks, threshold=threshold)
    if not pairs:
        print("No similar tasks found.")
        return 0
    for a, b, ratio in pairs:
        print(f"#{a.id} {a.name} ~ #{b.id} {b.name}: {ratio:.2f}")
    return 0


def cmd_huffman(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    text = ns.text if ns.text is not None else category_text(db.list_categories(path))
    if not text:
        print("Nothing to encode.")
        return 0
    codes = build_codes(text)
    for ch, code in sorted(codes.items(), key=lambda kv: (len(kv[1]), kv[1])):
        print(f"{ch!r}: {code}")
    print(f"Encoded: {encode(text, codes)}")
    return 0


def cmd_export(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    db.init_db(path)
    data = db.export_json(path)
    out = Path(ns.out).expanduser().resolve()
    out.write_text(json.dumps(data, indent=2), encoding="utf-8")
    print(f"Exported to: {out}")
    return 0


def cmd_import(ns: argparse.Namespace) -> int:
    path = _db_path_from_args(ns)
    data_path = Path(ns.file).expanduser().resolve()
    data = json.loads(data_path.read_text(encoding="utf-8"))
    db.import_json(path, data)
    print(f"Imported from: {data_path} into {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="taskscheduler",
        description="Task scheduler: personal tasks plus graph, flow and coding algorithms over them.",
    )
    p.add_argument(
        "--db",
        help="Path to SQLite DB (default: ~/.taskscheduler/taskscheduler.db or TASKSCHEDULER_DB env var)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr.")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("init", help="Initialize the database.")
    s.set_defaults(func=cmd_init)

    s = sub.add_parser("user-add", help="Register a user.")
    s.add_argument("email", help="User email.")
    s.add_argument("password", help="User password (stored hashed).")
    s.set_defaults(func=cmd_user_add)

    s = sub.add_parser("users", help="List users.")
    s.set_defaults(func=cmd_users)

    s = sub.add_parser("category-add", help="Create a category.")
    s.add_argument("name", help="Category name.")
    s.set_defaults(func=cmd_category_add)

    s = sub.add_parser("categories", help="List categories.")
    s.set_defaults(func=cmd_categories)

    s = sub.add_parser("add", help="Add a new task.")
    s.add_argument("name", help="Task name.")
    s.add_argument("--owner", type=int, required=True, help="Owner user ID.")
    s.add_argument("-d", "--description", help="Longer description.")
    s.add_argument("-p", "--priority", type=_parse_priority, help="Priority 1-5.")
    s.add_argument("--deadline", type=_parse_date, help="Deadline in YYYY-MM-DD.")
    s.add_argument("--cost", type=_parse_cost, default=0.0, help="Non-negative cost.")
    s.add_argument("--category", type=int, help="Category ID.")
    s.set_defaults(func=cmd_add)

    s = sub.add_parser("list", help="List tasks.")
    s.add_argument("--owner", type=int, help="Only tasks of this user ID.")
    s.set_defaults(func=cmd_list)

    s = sub.add_parser("categorize", help="Assign a category to a task.")
    s.add_argument("task_id", help="Task ID.")
    s.add_argument("category_id", help="Category ID.")
    s.set_defaults(func=cmd_categorize)

    s = sub.add_parser("deadline", help="Set a task deadline.")
    s.add_argument("task_id", help="Task ID.")
    s.add_argument("deadline", type=_parse_date, help="Deadline in YYYY-MM-DD.")
    s.set_defaults(func=cmd_deadline)

    s = sub.add_parser("priority", help="Set a task priority.")
    s.add_argument("task_id", help="Task ID.")
    s.add_argument("priority", type=_parse_priority, help="Priority 1-5.")
    s.set_defaults(func=cmd_priority)

    s = sub.add_parser("remind", help="Wait, then print a reminder for a task.")
    s.add_argument("task_id", help="Task ID.")
    s.add_argument("--seconds", type=float, default=5.0, help="Delay before the reminder.")
    s.set_defaults(func=cmd_remind)

    s = sub.add_parser("mst", help="Minimum spanning tree over a user's tasks (Prim).")
    s.add_argument("--owner", type=int, required=True, help="Acting user ID.")
    s.add_argument("--seed", type=int, help="Seed for the random edge costs.")
    s.set_defaults(func=cmd_mst)

    s = sub.add_parser("flow", help="Max flow through a user's tasks, bounded by cost.")
    s.add_argument("--owner", type=int, required=True, help="Acting user ID.")
    s.add_argument(
        "-a",
        "--algorithm",
        default=FlowAlgorithm.EDMONDS_KARP.value,
        help="ford-fulkerson, edmonds-karp or dinic (default: edmonds-karp).",
    )
    s.set_defaults(func=cmd_flow)

    s = sub.add_parser("similar-users", help="Users with tasks in the same category as a task.")
    s.add_argument("task_id", help="Start task ID.")
    s.add_argument("-m", "--method", default=Traversal.BFS.value, help="bfs or dfs (default: bfs).")
    s.add_argument(
        "--strict-categories",
        action="store_true",
        help="Do not treat uncategorized tasks as sharing a category.",
    )
    s.set_defaults(func=cmd_similar_users)

    s = sub.add_parser("similar-tasks", help="Pairs of a user's tasks with similar names (LCS).")
    s.add_argument("--owner", type=int, required=True, help="Acting user ID.")
    s.add_argument("--threshold", type=float, help="Minimum ratio (default: 0.5).")
    s.set_defaults(func=cmd_similar_tasks)

    s = sub.add_parser("huffman", help="Huffman codes for the category names (or --text).")
    s.add_argument("--text", help="Encode this text instead of the category names.")
    s.set_defaults(func=cmd_huffman)

    s = sub.add_parser("export", help="Export users/categories/tasks to JSON.")
    s.add_argument("--out", required=True, help="Output JSON file path.")
    s.set_defaults(func=cmd_export)

    s = sub.add_parser("import", help="Import users/categories/tasks from JSON.")
    s.add_argument("file", help="JSON file previously exported by taskscheduler export.")
    s.set_defaults(func=cmd_import)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    setup_logging(logging.DEBUG if ns.verbose else default_log_level())
    try:
        return int(ns.func(ns))
    except InvalidInput as e:
        print(str(e), file=sys.stderr)
        return 1
    except sqlite3.IntegrityError as e:
        logger.debug("Integrity error in %s", ns.cmd, exc_info=True)
        print(f"Rejected by the database: {e}", file=sys.stderr)
        return 1
