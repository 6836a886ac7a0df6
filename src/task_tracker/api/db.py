from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from ..errors import NotFoundError, StoreError
from ..models import (
    DEFAULT_STATUS,
    TASK_STATUSES,
    Task,
    contains_ci,
    normalize_description,
    validate_status,
    validate_title,
)
from .repositories import ListQuery, TaskStore, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    status: str = "status"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()

# SQL function used for search so SQLite matches exactly like the Python filters.
_CONTAINS_FN = "contains_ci"

# SQLite INTEGER range; ids outside it cannot be bound and never exist.
_MIN_ID = -(2 ** 63)
_MAX_ID = 2 ** 63 - 1


def _to_db_time(value: datetime) -> str:
    # Fixed-width ISO text keeps lexicographic order equal to time order.
    return value.isoformat(timespec="microseconds")


class SQLiteTaskStore(TaskStore):
    """
    SQLite-backed task store. One connection per operation; every
    sqlite3.Error is logged and re-raised as StoreError.
    """

    def __init__(self, db_path: str) -> None:
        try:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create database directory for {db_path}: {exc}") from exc
        self._db_path = db_path
        self._init_db()
        logger.info("SQLiteTaskStore ready db=%s", db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            logger.exception("Could not open task database %s", self._db_path)
            raise StoreError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.create_function(_CONTAINS_FN, 2, contains_ci, deterministic=True)
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.exception("Task database operation failed")
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        allowed = ", ".join(f"'{s}'" for s in TASK_STATUSES)
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL CHECK (length(trim({_COLS.title})) > 0),
                    {_COLS.description} TEXT NOT NULL DEFAULT '',
                    {_COLS.status} TEXT NOT NULL DEFAULT '{DEFAULT_STATUS}'
                        CHECK ({_COLS.status} IN ({allowed})),
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_status ON {_COLS.table}({_COLS.status})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> Task:
        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description] or "",
            "status": str(row[_COLS.status]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, task_id: int) -> Optional[sqlite3.Row]:
        if not _MIN_ID <= task_id <= _MAX_ID:
            return None
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)
        ).fetchone()

    def ping(self) -> bool:
        try:
            with self._conn() as conn:
                conn.execute("SELECT 1").fetchone()
        except StoreError:
            return False
        return True

    def list(self, query: Optional[ListQuery] = None) -> List[Task]:
        q = (query or ListQuery()).normalized()
        clauses = []
        params: list = []

        if q.status is not None:
            clauses.append(f"{_COLS.status} = ?")
            params.append(q.status)

        if q.search:
            clauses.append(
                f"({_CONTAINS_FN}({_COLS.title}, ?) OR {_CONTAINS_FN}({_COLS.description}, ?))"
            )
            params.extend([q.search, q.search])

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                ORDER BY {_COLS.created_at} DESC, {_COLS.id} DESC
                """,
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get(self, task_id: int) -> Task:
        with self._conn() as conn:
            row = self._fetch(conn, task_id)
            if row is None:
                raise NotFoundError(task_id)
            return self._row_to_entity(row)

    def create(
        self, title: str, description: Optional[str] = None, status: Optional[str] = None
    ) -> Task:
        clean_title = validate_title(title)
        clean_status = validate_status(status) or DEFAULT_STATUS
        clean_description = normalize_description(description) or ""
        now = _to_db_time(utc_now())

        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.status},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?)
                """,
                (clean_title, clean_description, clean_status, now, now),
            )
            new_id = cur.lastrowid
            row = self._fetch(conn, new_id)
            assert row is not None
            created = self._row_to_entity(row)
        logger.info("Created task id=%s status=%s", created["id"], created["status"])
        return created

    def update(
        self,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Task:
        clean_title = validate_title(title)
        clean_status = validate_status(status)
        clean_description = normalize_description(description)

        with self._conn() as conn:
            row = self._fetch(conn, task_id)
            if row is None:
                raise NotFoundError(task_id)
            current = self._row_to_entity(row)

            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.status} = ?,
                    {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    clean_title,
                    clean_description if clean_description is not None else current["description"],
                    clean_status or current["status"],
                    _to_db_time(utc_now()),
                    task_id,
                ),
            )
            # Row deleted between the existence check and the update.
            if cur.rowcount == 0:
                raise NotFoundError(task_id)
            row2 = self._fetch(conn, task_id)
            assert row2 is not None
            updated = self._row_to_entity(row2)
        logger.info("Updated task id=%s status=%s", task_id, updated["status"])
        return updated

    def delete(self, task_id: int) -> Task:
        with self._conn() as conn:
            row = self._fetch(conn, task_id)
            if row is None:
                raise NotFoundError(task_id)
            existing = self._row_to_entity(row)
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            if cur.rowcount == 0:
                raise NotFoundError(task_id)
        logger.info("Deleted task id=%s", task_id)
        return existing
