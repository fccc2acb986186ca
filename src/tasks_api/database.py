"""
Task Database Layer

Provides SQLite-based storage for task records. A single connection in WAL mode
is shared across request threads and guarded by a re-entrant lock, so every
statement runs to completion before the next one starts.
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class TaskDatabase:
    """
    SQLite database holding the ``tasks`` table.

    Features:
    - Schema created on construction if absent
    - WAL mode with busy timeout for concurrent access
    - Thread-safe operations through a shared connection lock
    """

    def __init__(self, db_path: str):
        """
        Initialize TaskDatabase and ensure the schema exists.

        Args:
            db_path: Path to SQLite database file

        Raises:
            RuntimeError: If the database cannot be opened or initialized
        """
        self.db_path = Path(db_path)
        self._connection_lock = threading.RLock()
        self._connection: Optional[sqlite3.Connection] = None

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RuntimeError(f"Failed to initialize database at {self.db_path}: {e}")

        self._initialize_database()

    def _initialize_database(self) -> None:
        """Open the connection, configure pragmas and create the schema."""
        try:
            self._connection = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,  # Autocommit mode
                check_same_thread=False
            )

            cursor = self._connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=5000")

            self._create_schema()

        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to initialize database at {self.db_path}: {e}")

        logger.info(f"Database initialized: {self.db_path}")

    def _create_schema(self) -> None:
        """Create the tasks table if it doesn't exist."""
        cursor = self._connection.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL DEFAULT '',
                is_completed INTEGER NOT NULL DEFAULT 0
            )
        """)

    @staticmethod
    def _row_to_task(row) -> Dict[str, Any]:
        return {
            "id": row[0],
            "title": row[1],
            "is_completed": bool(row[2])
        }

    def get_all_tasks(self) -> List[Dict[str, Any]]:
        """
        Get every task in the store's natural (rowid) order.

        Returns:
            List of task dictionaries, empty if there are none
        """
        with self._connection_lock:
            cursor = self._connection.cursor()
            cursor.execute("SELECT id, title, is_completed FROM tasks ORDER BY id")
            return [self._row_to_task(row) for row in cursor.fetchall()]

    def get_task_by_id(self, task_id: int) -> Optional[Dict[str, Any]]:
        """
        Get a single task by ID.

        Args:
            task_id: Task ID to retrieve

        Returns:
            Task dictionary, or None if not found
        """
        with self._connection_lock:
            cursor = self._connection.cursor()
            cursor.execute(
                "SELECT id, title, is_completed FROM tasks WHERE id = ?",
                (task_id,)
            )
            row = cursor.fetchone()
            return self._row_to_task(row) if row else None

    def create_task(self, title: str = "", is_completed: bool = False) -> Dict[str, Any]:
        """
        Insert a new task. The store assigns the id.

        Returns:
            The created task including its assigned id
        """
        with self._connection_lock:
            cursor = self._connection.cursor()
            cursor.execute(
                "INSERT INTO tasks (title, is_completed) VALUES (?, ?)",
                (title, int(is_completed))
            )
            task_id = cursor.lastrowid

        logger.info(f"Created task {task_id}")
        return {"id": task_id, "title": title, "is_completed": is_completed}

    def update_task(self, task_id: int, title: str, is_completed: bool) -> Optional[Dict[str, Any]]:
        """
        Overwrite title and completion flag of an existing task.

        Reads the row first and writes it back with the new field values; the
        id never changes.

        Args:
            task_id: Task to update
            title: New title
            is_completed: New completion flag

        Returns:
            The updated task, or None if no task has this id
        """
        with self._connection_lock:
            task = self.get_task_by_id(task_id)
            if task is None:
                return None

            task["title"] = title
            task["is_completed"] = is_completed

            cursor = self._connection.cursor()
            cursor.execute(
                "UPDATE tasks SET title = ?, is_completed = ? WHERE id = ?",
                (task["title"], int(task["is_completed"]), task_id)
            )

        logger.info(f"Updated task {task_id}")
        return task

    def delete_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        """
        Delete a task.

        Args:
            task_id: ID of the task to delete

        Returns:
            The task as it was before deletion, or None if not found
        """
        with self._connection_lock:
            task = self.get_task_by_id(task_id)
            if task is None:
                return None

            cursor = self._connection.cursor()
            cursor.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cursor.rowcount == 0:
                return None

        logger.info(f"Deleted task {task_id}")
        return task

    def ensure_open(self) -> None:
        """Reopen the connection if ``close()`` was called."""
        with self._connection_lock:
            if self._connection is None:
                self._initialize_database()

    def close(self):
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
