from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Generator, Iterator, List, Optional

from .errors import StoreUnavailable
from .models import DailySessionEntity, TaskEntity, TaskStatus
from .repositories import Repository, new_task_id
from .utils import Clock, local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    seq: str = "seq"
    id: str = "id"
    owner_id: str = "owner_id"
    title: str = "title"
    status: str = "status"
    is_priority: str = "is_priority"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _DayCols:
    table: str = "daily_sessions"
    owner_id: str = "owner_id"
    day: str = "day"
    focus_minutes: str = "focus_minutes"
    cycles_completed: str = "cycles_completed"
    updated_at: str = "updated_at"


_T = _TaskCols()
_D = _DayCols()


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    Connections run in autocommit mode. ``atomic()`` opens a ``BEGIN IMMEDIATE``
    transaction and pins its connection to the calling thread, so every store
    call made inside the block shares it. IMMEDIATE takes the write lock up
    front: a second writer waits instead of reading a count that is about to
    go stale.
    """

    def __init__(self, db_path: str, now: Optional[Clock] = None) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._clock = now or local_now
        self._local = threading.local()
        self._init_db()
        logger.info("SQLiteRepository ready db=%s", db_path)

    def _now(self) -> datetime:
        return self._clock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        active: Optional[sqlite3.Connection] = getattr(self._local, "conn", None)
        try:
            if active is not None:
                yield active
                return
            conn = self._connect()
            try:
                yield conn
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("SQLite store failure db=%s: %s", self._db_path, e)
            raise StoreUnavailable(f"Task store unavailable: {e}") from e

    @contextmanager
    def atomic(self, owner_id: str) -> Iterator[Repository]:
        if getattr(self._local, "conn", None) is not None:
            # Already inside a transaction on this thread.
            yield self
            return
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            self._local.conn = conn
            try:
                yield self
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")
            finally:
                self._local.conn = None

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.seq} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.id} TEXT NOT NULL UNIQUE,
                    {_T.owner_id} TEXT NOT NULL,
                    {_T.title} TEXT NOT NULL,
                    {_T.status} TEXT NOT NULL DEFAULT 'TODO',
                    {_T.is_priority} INTEGER NOT NULL DEFAULT 0,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_owner ON {_T.table}({_T.owner_id})"
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_D.table} (
                    {_D.owner_id} TEXT NOT NULL,
                    {_D.day} TEXT NOT NULL,
                    {_D.focus_minutes} INTEGER NOT NULL DEFAULT 0,
                    {_D.cycles_completed} INTEGER NOT NULL DEFAULT 0,
                    {_D.updated_at} TEXT NOT NULL,
                    PRIMARY KEY ({_D.owner_id}, {_D.day})
                )
                """
            )

    def _row_to_task(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_T.id]),
            "owner_id": str(row[_T.owner_id]),
            "title": str(row[_T.title]),
            "status": TaskStatus(row[_T.status]),
            "is_priority": bool(row[_T.is_priority]),
            "created_at": datetime.fromisoformat(row[_T.created_at]),
            "updated_at": datetime.fromisoformat(row[_T.updated_at]),
            "seq": int(row[_T.seq]),
        }

    def _row_to_day(self, row: sqlite3.Row) -> DailySessionEntity:
        return {
            "owner_id": str(row[_D.owner_id]),
            "day": date.fromisoformat(row[_D.day]),
            "focus_minutes": int(row[_D.focus_minutes]),
            "cycles_completed": int(row[_D.cycles_completed]),
            "updated_at": datetime.fromisoformat(row[_D.updated_at]),
        }

    def find_tasks_by_owner(self, owner_id: str) -> List[TaskEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.table} WHERE {_T.owner_id} = ?", (owner_id,)
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def find_task_by_id(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_T.table} WHERE {_T.id} = ? AND {_T.owner_id} = ?",
                (task_id, owner_id),
            ).fetchone()
            return self._row_to_task(row) if row else None

    def create_task(
        self,
        owner_id: str,
        title: str,
        is_priority: bool = False,
        status: TaskStatus = TaskStatus.TODO,
    ) -> TaskEntity:
        now = self._now().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.owner_id}, {_T.title}, {_T.status},
                    {_T.is_priority}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (new_task_id(), owner_id, title, status.value, 1 if is_priority else 0, now, now),
            )
            row = conn.execute(
                f"SELECT * FROM {_T.table} WHERE {_T.seq} = ?", (cur.lastrowid,)
            ).fetchone()
            assert row is not None
            return self._row_to_task(row)

    def update_task(
        self,
        task_id: str,
        owner_id: str,
        *,
        status: Optional[TaskStatus] = None,
        is_priority: Optional[bool] = None,
    ) -> Optional[TaskEntity]:
        assignments = [f"{_T.updated_at} = ?"]
        params: list = [self._now().isoformat()]
        if status is not None:
            assignments.append(f"{_T.status} = ?")
            params.append(TaskStatus(status).value)
        if is_priority is not None:
            assignments.append(f"{_T.is_priority} = ?")
            params.append(1 if is_priority else 0)

        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {', '.join(assignments)}
                WHERE {_T.id} = ? AND {_T.owner_id} = ?
                """,
                [*params, task_id, owner_id],
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (task_id,)
            ).fetchone()
            assert row is not None
            return self._row_to_task(row)

    def delete_task(self, task_id: str, owner_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_T.table} WHERE {_T.id} = ? AND {_T.owner_id} = ?",
                (task_id, owner_id),
            )
            return cur.rowcount > 0

    def count_priority_active_tasks(self, owner_id: str, exclude_id: Optional[str] = None) -> int:
        sql = (
            f"SELECT COUNT(*) AS cnt FROM {_T.table} "
            f"WHERE {_T.owner_id} = ? AND {_T.is_priority} = 1 AND {_T.status} != ?"
        )
        params: list = [owner_id, TaskStatus.DONE.value]
        if exclude_id is not None:
            sql += f" AND {_T.id} != ?"
            params.append(exclude_id)
        with self._conn() as conn:
            row = conn.execute(sql, params).fetchone()
            return int(row["cnt"]) if row else 0

    def find_daily_record(self, owner_id: str, day: date) -> Optional[DailySessionEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_D.table} WHERE {_D.owner_id} = ? AND {_D.day} = ?",
                (owner_id, day.isoformat()),
            ).fetchone()
            return self._row_to_day(row) if row else None

    def upsert_daily_record(
        self, owner_id: str, day: date, focus_minutes: int, cycles_completed: int
    ) -> DailySessionEntity:
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_D.table} ({_D.owner_id}, {_D.day}, {_D.focus_minutes},
                    {_D.cycles_completed}, {_D.updated_at})
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT({_D.owner_id}, {_D.day}) DO UPDATE SET
                    {_D.focus_minutes} = excluded.{_D.focus_minutes},
                    {_D.cycles_completed} = excluded.{_D.cycles_completed},
                    {_D.updated_at} = excluded.{_D.updated_at}
                """,
                (owner_id, day.isoformat(), focus_minutes, cycles_completed, self._now().isoformat()),
            )
            row = conn.execute(
                f"SELECT * FROM {_D.table} WHERE {_D.owner_id} = ? AND {_D.day} = ?",
                (owner_id, day.isoformat()),
            ).fetchone()
            assert row is not None
            return self._row_to_day(row)
